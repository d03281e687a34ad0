"""
LDPath Parser - Lark-based parser for LDPath programs.

This module provides the parser infrastructure for turning LDPath program
source into a parse tree that the validator checks and the builder turns
into an executable Program.
"""

from pathlib import Path
from typing import Optional, List
from dataclasses import dataclass, field

from lark import Lark, Tree
from lark.exceptions import (
    UnexpectedInput,
    UnexpectedToken,
    UnexpectedCharacters,
    UnexpectedEOF,
)


# ============================================================
# ERROR TYPES
# ============================================================

@dataclass
class ParseError:
    """Represents a parsing error with location information."""
    message: str
    line: int
    column: int
    context: Optional[str] = None
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        loc = f"line {self.line}, column {self.column}"
        msg = f"Parse error at {loc}: {self.message}"
        if self.context:
            msg += f"\n  Context: {self.context}"
        if self.suggestion:
            msg += f"\n  Suggestion: {self.suggestion}"
        return msg


@dataclass
class ParseResult:
    """Result of parsing LDPath source code."""
    success: bool
    tree: Optional[Tree] = None
    errors: List[ParseError] = field(default_factory=list)
    source: Optional[str] = None

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def __bool__(self) -> bool:
        return self.success


# ============================================================
# PARSER
# ============================================================

class LDPathParser:
    """
    Parser for LDPath programs.

    Usage:
        parser = LDPathParser()
        result = parser.parse(source_code)
        if result.success:
            tree = result.tree
        else:
            for error in result.errors:
                print(error)

    The Lark instance is built once and shared; LALR parsing keeps no state
    between calls, so one instance serves concurrent callers.
    """

    _instance: Optional["LDPathParser"] = None
    _parser: Optional[Lark] = None

    def __new__(cls) -> "LDPathParser":
        """Singleton pattern for parser reuse."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the parser with the grammar file."""
        if LDPathParser._parser is not None:
            return

        grammar_path = Path(__file__).parent / "grammar.lark"

        if not grammar_path.exists():
            raise FileNotFoundError(
                f"Grammar file not found: {grammar_path}\n"
                "Ensure grammar.lark is in the same directory as parser.py"
            )

        with open(grammar_path, "r", encoding="utf-8") as f:
            grammar = f.read()

        LDPathParser._parser = Lark(
            grammar,
            start="start",
            parser="lalr",
            propagate_positions=True,
            maybe_placeholders=False,
        )

    @property
    def parser(self) -> Lark:
        """Get the Lark parser instance."""
        if LDPathParser._parser is None:
            raise RuntimeError("Parser not initialized")
        return LDPathParser._parser

    def parse(self, source: str) -> ParseResult:
        """
        Parse LDPath source code into a parse tree.

        Args:
            source: LDPath program source

        Returns:
            ParseResult containing the tree or errors
        """
        if not source or not source.strip():
            return ParseResult(
                success=False,
                errors=[ParseError(
                    message="Empty program",
                    line=1,
                    column=1,
                    suggestion="Provide at least one field definition"
                )],
                source=source
            )

        try:
            tree = self.parser.parse(source)
            return ParseResult(success=True, tree=tree, source=source)

        except UnexpectedToken as e:
            error = self._handle_unexpected_token(e, source)
            return ParseResult(success=False, errors=[error], source=source)

        except UnexpectedCharacters as e:
            error = self._handle_unexpected_characters(e, source)
            return ParseResult(success=False, errors=[error], source=source)

        except UnexpectedEOF as e:
            error = self._handle_unexpected_eof(e, source)
            return ParseResult(success=False, errors=[error], source=source)

        except UnexpectedInput as e:
            error = self._handle_unexpected_input(e, source)
            return ParseResult(success=False, errors=[error], source=source)

    # ============================================================
    # ERROR HANDLERS
    # ============================================================

    def _handle_unexpected_token(
        self, e: UnexpectedToken, source: str
    ) -> ParseError:
        """Handle unexpected token errors with helpful messages."""
        token = e.token
        if token is None or token.type == "$END":
            return self._handle_unexpected_eof(e, source)

        line = e.line if e.line and e.line > 0 else 1
        column = e.column if e.column and e.column > 0 else 1

        expected = sorted(e.expected) if e.expected else []
        expected_str = ", ".join(expected[:5])
        if len(expected) > 5:
            expected_str += f" (and {len(expected) - 5} more)"

        return ParseError(
            message=f"Unexpected token '{token}'",
            line=line,
            column=column,
            context=self._get_context_line(source, line),
            suggestion=f"Expected one of: {expected_str}" if expected else None
        )

    def _handle_unexpected_characters(
        self, e: UnexpectedCharacters, source: str
    ) -> ParseError:
        """Handle unexpected character errors."""
        line = e.line or 1
        column = e.column or 1
        char = getattr(e, "char", None) or "unknown"
        context = self._get_context_line(source, line)

        return ParseError(
            message=f"Unexpected character '{char}'",
            line=line,
            column=column,
            context=context,
            suggestion=self._suggest_for_char(char)
        )

    def _handle_unexpected_eof(
        self, e: UnexpectedInput, source: str
    ) -> ParseError:
        """Handle unexpected end-of-input errors."""
        lines = source.rstrip().split('\n')
        line = len(lines)
        column = len(lines[-1]) + 1 if lines else 1

        expected = sorted(getattr(e, "expected", None) or [])
        suggestion = None
        if "SEMICOLON" in expected:
            suggestion = "Missing semicolon ';' after field definition"
        elif "RPAR" in expected:
            suggestion = "Missing closing parenthesis ')'"
        elif "RSQB" in expected:
            suggestion = "Missing closing bracket ']'"
        elif expected:
            suggestion = f"Expected: {', '.join(expected[:5])}"

        return ParseError(
            message="Unexpected end of program",
            line=line,
            column=column,
            context=self._get_context_line(source, line),
            suggestion=suggestion
        )

    def _handle_unexpected_input(
        self, e: UnexpectedInput, source: str
    ) -> ParseError:
        """Handle generic unexpected input errors."""
        line = getattr(e, 'line', 1) or 1
        column = getattr(e, 'column', 1) or 1

        return ParseError(
            message=str(e),
            line=line,
            column=column,
            context=self._get_context_line(source, line)
        )

    # ============================================================
    # HELPERS
    # ============================================================

    def _get_context_line(self, source: str, line: int) -> Optional[str]:
        """Get the source line for context."""
        lines = source.split('\n')
        if 1 <= line <= len(lines):
            return lines[line - 1].rstrip()
        return None

    def _suggest_for_char(self, char: str) -> Optional[str]:
        """Suggest fixes for common character errors."""
        if char == '<':
            return "Check that the IRI is closed with '>' and contains no spaces"
        if char == '"' or char == "'":
            return "Check for unclosed string"
        if char == ':':
            return "Use '::' before a field type and declare prefixes with @prefix"
        if char == '{':
            return "Repetition bounds follow a parenthesised selector, e.g. (p){1,3}"
        return None


# ============================================================
# UTILITY FUNCTIONS
# ============================================================

def parse_ldpath(source: str) -> ParseResult:
    """
    Convenience function to parse LDPath source code.

    Args:
        source: LDPath program source

    Returns:
        ParseResult containing the tree or errors
    """
    parser = LDPathParser()
    return parser.parse(source)

