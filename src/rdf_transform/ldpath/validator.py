"""
LDPath Validator - Parse-time validation for LDPath programs.

This module validates LDPath parse trees for:
- Structure (at least one field, unique field names, one program filter)
- Identifiers (declared prefixes, absolute well-formed IRIs)
- Functions (registered names, argument counts, constant regex patterns)
- Field types and repetition bounds
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from lark import Token, Tree

from .builtins import FIELD_TYPES, SelectorFunction
from .utils import (
    collect_namespaces,
    effective_namespaces,
    expand_curie,
    is_well_formed_iri,
    node_position,
    split_curie,
    strip_angles,
    unquote,
)


# ============================================================
# VALIDATION RESULT TYPES
# ============================================================

class Severity(Enum):
    """Severity level for validation issues."""
    ERROR = "error"      # Must be fixed, blocks compilation
    WARNING = "warning"  # Allows compilation


class IssueCode(Enum):
    """What kind of problem an issue reports."""
    EMPTY_PROGRAM = "empty_program"
    DUPLICATE_FIELD = "duplicate_field"
    DUPLICATE_FILTER = "duplicate_filter"
    UNDEFINED_PREFIX = "undefined_prefix"
    MALFORMED_IRI = "malformed_iri"
    UNKNOWN_FUNCTION = "unknown_function"
    ARITY = "arity"
    UNKNOWN_TYPE = "unknown_type"
    INVALID_RANGE = "invalid_range"
    INVALID_REGEX = "invalid_regex"
    PREFIX_REDEFINED = "prefix_redefined"


@dataclass
class ValidationIssue:
    """Represents a validation issue found in an LDPath program."""
    severity: Severity
    code: IssueCode
    message: str
    line: Optional[int] = None
    column: Optional[int] = None
    subject: Optional[str] = None
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        loc = ""
        if self.line:
            loc = f" at line {self.line}"
            if self.column:
                loc += f", column {self.column}"

        msg = f"[{self.severity.value.upper()}]{loc}: {self.message}"
        if self.suggestion:
            msg += f"\n  Suggestion: {self.suggestion}"
        return msg


@dataclass
class ValidationResult:
    """Result of validating an LDPath parse tree."""
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    program_info: Dict[str, Any] = field(default_factory=dict)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def __bool__(self) -> bool:
        return self.valid


# ============================================================
# VALIDATOR
# ============================================================

class LDPathValidator:
    """
    Validates LDPath parse trees for correctness.

    Usage:
        validator = LDPathValidator(get_builtin_functions())
        result = validator.validate(tree)
        if not result.valid:
            for issue in result.issues:
                print(issue)
    """

    def __init__(self, functions: Mapping[str, SelectorFunction], strict: bool = False):
        """
        Initialize the validator.

        Args:
            functions: Function registry keyed by IRI
            strict: If True, treat warnings as errors
        """
        self.functions = functions
        self.strict = strict
        self.issues: List[ValidationIssue] = []
        self.namespaces: Dict[str, str] = {}

    def validate(self, tree: Tree) -> ValidationResult:
        """
        Validate an LDPath parse tree.

        Args:
            tree: Lark parse tree from LDPathParser

        Returns:
            ValidationResult with issues and program info
        """
        self.issues = []
        self.namespaces = effective_namespaces(collect_namespaces(tree))

        field_names: Set[str] = set()
        fields: List[str] = []
        declared: Dict[str, str] = {}
        filters = 0

        for child in tree.children:
            if not isinstance(child, Tree):
                continue
            if child.data == "prefix_decl":
                self._validate_prefix_decl(child, declared)
            elif child.data == "filter_decl":
                filters += 1
                if filters > 1:
                    self._error(
                        IssueCode.DUPLICATE_FILTER, child,
                        "Only one @filter is allowed per program",
                    )
                self._walk(child.children[0])
            elif child.data == "field_def":
                name = str(child.children[0])
                if name in field_names:
                    self._error(
                        IssueCode.DUPLICATE_FIELD, child.children[0],
                        f"Duplicate field '{name}'", subject=name,
                        suggestion="Field names must be unique within a program",
                    )
                field_names.add(name)
                fields.append(name)
                for part in child.children[1:]:
                    if isinstance(part, Tree) and part.data == "field_type":
                        self._validate_field_type(part)
                    else:
                        self._walk(part)

        if not fields:
            self._error(
                IssueCode.EMPTY_PROGRAM, tree, "Program defines no fields",
                suggestion="Add a field such as: title = dc:title ;",
            )

        errors = [i for i in self.issues if i.severity == Severity.ERROR]
        if self.strict:
            errors = self.issues

        return ValidationResult(
            valid=not errors,
            issues=list(self.issues),
            program_info={"fields": fields, "prefixes": declared, "filters": filters},
        )

    # ============================================================
    # STATEMENTS
    # ============================================================

    def _validate_prefix_decl(self, node: Tree, declared: Dict[str, str]) -> None:
        name, iri_token = node.children
        iri = strip_angles(str(iri_token))
        if not is_well_formed_iri(iri):
            self._error(
                IssueCode.MALFORMED_IRI, iri_token,
                f"Malformed namespace IRI '{iri}' for prefix '{name}'",
            )
        previous = declared.get(str(name))
        if previous is not None and previous != iri:
            self._warning(
                IssueCode.PREFIX_REDEFINED, node,
                f"Prefix '{name}' redefined from <{previous}> to <{iri}>",
            )
        declared[str(name)] = iri

    def _validate_field_type(self, node: Tree) -> None:
        iri = self._resolve_iri(node.children[0])
        if iri is not None and iri not in FIELD_TYPES:
            self._error(
                IssueCode.UNKNOWN_TYPE, node,
                f"Unknown field type <{iri}>",
                suggestion="Use an XML Schema type such as xsd:string or xsd:int",
            )

    # ============================================================
    # SELECTORS AND TESTS
    # ============================================================

    def _walk(self, node: Union[Tree, Token]) -> None:
        """Check every IRI, function call and range below node."""
        if not isinstance(node, Tree):
            return

        if node.data in ("full_iri", "prefixed_iri"):
            self._resolve_iri(node)
            return
        if node.data == "function_call":
            self._validate_function_call(node)
            return
        if node.data == "recursive_range":
            self._validate_range(node.children[1])

        for child in node.children:
            self._walk(child)

    def _resolve_iri(self, node: Tree) -> Optional[str]:
        token = node.children[0]
        if node.data == "prefixed_iri":
            return self._expand(token)
        iri = strip_angles(str(token))
        if not is_well_formed_iri(iri):
            self._error(
                IssueCode.MALFORMED_IRI, token,
                f"Malformed IRI '<{iri}>'",
                suggestion="Use an absolute IRI such as <http://example.org/p>",
            )
            return None
        return iri

    def _expand(self, token: Token) -> Optional[str]:
        iri = expand_curie(str(token), self.namespaces)
        if iri is None:
            prefix, _ = split_curie(str(token))
            self._error(
                IssueCode.UNDEFINED_PREFIX, token,
                f"Undefined prefix '{prefix}' in '{token}'",
                suggestion=f"Declare it with: @prefix {prefix} : <...> ;",
            )
            return None
        if not is_well_formed_iri(iri):
            self._error(IssueCode.MALFORMED_IRI, token, f"Malformed IRI '{iri}'")
            return None
        return iri

    def _validate_function_call(self, node: Tree) -> None:
        name_node = node.children[0]
        name_token = name_node.children[0]
        args = node.children[1:]
        for arg in args:
            self._walk(arg)

        iri = self._resolve_iri(name_node)
        if iri is None:
            return
        function = self.functions.get(iri)
        if function is None:
            self._error(
                IssueCode.UNKNOWN_FUNCTION, name_token,
                f"Unknown selector function '{name_token}'", subject=str(name_token),
            )
            return
        if not function.accepts_arity(len(args)):
            self._error(
                IssueCode.ARITY, name_token,
                f"Function '{name_token}' expects {function.arity_text()} "
                f"argument(s), got {len(args)}",
                subject=str(name_token),
            )
            return
        if function.name == "replace":
            pattern = args[1]
            if isinstance(pattern, Tree) and pattern.data == "string_constant":
                try:
                    re.compile(unquote(str(pattern.children[0])))
                except re.error as e:
                    self._error(
                        IssueCode.INVALID_REGEX, pattern,
                        f"Invalid regular expression in '{name_token}': {e}",
                    )

    def _validate_range(self, node: Tree) -> None:
        bounds = {child.data: int(str(child.children[0])) for child in node.children}
        lower = bounds.get("min_bound", 0)
        upper = bounds.get("max_bound")
        if upper is not None and (upper < lower or upper == 0):
            self._error(
                IssueCode.INVALID_RANGE, node,
                f"Invalid repetition bounds {{{lower},{upper}}}",
                suggestion="The upper bound must be at least 1 and not below the lower bound",
            )

    # ============================================================
    # HELPERS
    # ============================================================

    def _error(self, code: IssueCode, node: Union[Tree, Token], message: str,
               subject: Optional[str] = None, suggestion: Optional[str] = None) -> None:
        self._add(Severity.ERROR, code, node, message, subject, suggestion)

    def _warning(self, code: IssueCode, node: Union[Tree, Token], message: str) -> None:
        self._add(Severity.WARNING, code, node, message, None, None)

    def _add(self, severity: Severity, code: IssueCode, node: Union[Tree, Token],
             message: str, subject: Optional[str], suggestion: Optional[str]) -> None:
        line, column = node_position(node)
        self.issues.append(ValidationIssue(
            severity=severity,
            code=code,
            message=message,
            line=line,
            column=column,
            subject=subject,
            suggestion=suggestion,
        ))


def validate_ldpath(
    tree: Tree,
    functions: Mapping[str, SelectorFunction],
    strict: bool = False,
) -> ValidationResult:
    """
    Convenience function to validate a parsed LDPath program.

    Args:
        tree: Parsed LDPath tree
        functions: Function registry keyed by IRI
        strict: Treat warnings as errors

    Returns:
        ValidationResult
    """
    return LDPathValidator(functions, strict=strict).validate(tree)
