"""
Transformation Exception Hierarchy

Contains all exception classes raised by the transformation engine. Every
failure the engine reports to its caller is a TransformError subclass, so
callers can map each kind to a distinct client-facing response.
"""

from typing import Optional


class TransformError(Exception):
    """
    Base exception for all transformation operations.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """
    pass


class TransformNotFound(TransformError):
    """
    Raised when a stored program name has no resolvable source.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """

    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(message or f"No transformation found for name '{name}'")


class UnsupportedTransformKind(TransformError):
    """
    Raised when no registered transformation accepts a content type.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """

    def __init__(self, content_type: str, message: Optional[str] = None):
        self.content_type = content_type
        super().__init__(
            message or f"No transformation registered for content type '{content_type}'"
        )


class ProgramParseError(TransformError):
    """
    Raised when program source is malformed.

    Carries the location and the offending fragment when known.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        fragment: Optional[str] = None,
    ):
        self.message = message
        self.line = line
        self.column = column
        self.fragment = fragment
        super().__init__(self._format())

    def _format(self) -> str:
        msg = self.message
        if self.line is not None:
            loc = f"line {self.line}"
            if self.column is not None:
                loc += f", column {self.column}"
            msg = f"{msg} (at {loc})"
        if self.fragment:
            msg += f"\n  Context: {self.fragment}"
        return msg


class EmptyProgramError(ProgramParseError):
    """Raised when a program defines no fields."""
    pass


class DuplicateFieldError(ProgramParseError):
    """Raised when a program defines the same field name twice."""

    def __init__(self, field_name: str, line: Optional[int] = None,
                 column: Optional[int] = None, fragment: Optional[str] = None):
        self.field_name = field_name
        super().__init__(
            f"Duplicate field '{field_name}'", line=line, column=column, fragment=fragment
        )


class SelectorSyntaxError(ProgramParseError):
    """Raised for grammar errors and malformed identifiers in selectors."""
    pass


class UnknownSelectorFunction(ProgramParseError):
    """
    Raised when a selector references a function that is not registered.

    Detected while building the program; raised during evaluation only for
    selectors that were assembled without a bound implementation.
    """

    def __init__(self, function: str, line: Optional[int] = None,
                 column: Optional[int] = None, fragment: Optional[str] = None):
        self.function = function
        super().__init__(
            f"Unknown selector function '{function}'",
            line=line, column=column, fragment=fragment,
        )


class InvalidQuerySyntax(ProgramParseError):
    """Raised when SPARQL query text cannot be compiled."""
    pass


class TraversalError(TransformError):
    """
    Raised when a selector step cannot be evaluated against a graph.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """

    def __init__(self, message: str, fragment: Optional[str] = None):
        self.fragment = fragment
        super().__init__(f"{message}: {fragment}" if fragment else message)


class ProgramStoreError(TransformError):
    """
    Raised when the program store backend fails to read or write.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message)


__all__ = [
    "TransformError",
    "TransformNotFound",
    "UnsupportedTransformKind",
    "ProgramParseError",
    "EmptyProgramError",
    "DuplicateFieldError",
    "SelectorSyntaxError",
    "UnknownSelectorFunction",
    "InvalidQuerySyntax",
    "TraversalError",
    "ProgramStoreError",
]
