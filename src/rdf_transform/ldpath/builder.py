"""
LDPath Builder - Parse tree to Program compiler.

This module turns validated LDPath parse trees into executable Program
objects. Each tree node kind has a ``_build_<data>`` method; selectors and
node tests are built bottom-up into the immutable objects of selectors.py.
"""

import logging
from decimal import Decimal
from typing import List, Mapping, Optional

from lark import Token, Tree
from rdflib import Literal, URIRef

from ..exceptions import (
    DuplicateFieldError,
    EmptyProgramError,
    ProgramParseError,
    SelectorSyntaxError,
    UnknownSelectorFunction,
)
from .builtins import FIELD_TYPES, FieldType, SelectorFunction, get_builtin_functions
from .parser import LDPathParser
from .program import FieldRule, Program
from .selectors import (
    AndTest,
    DatatypeTest,
    FilteredSelector,
    FunctionSelector,
    IntersectionSelector,
    IsATest,
    LanguageTest,
    NodeTest,
    NotTest,
    OrTest,
    PathSelector,
    PathTest,
    PathValueTest,
    PropertySelector,
    RecursiveSelector,
    ReversePropertySelector,
    ReverseWildcardSelector,
    Selector,
    SelfSelector,
    StringConstantSelector,
    UnionSelector,
    ValueTest,
    WildcardSelector,
)
from .utils import (
    collect_namespaces,
    effective_namespaces,
    expand_curie,
    node_position,
    strip_angles,
    unquote,
)
from .validator import IssueCode, LDPathValidator, ValidationIssue


logger = logging.getLogger(__name__)


class ProgramBuilder:
    """
    Builds Program objects from LDPath parse trees.

    The tree must have passed LDPathValidator; the builder trusts that every
    prefix is declared and every function is registered.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a builder.
    """

    def __init__(self, functions: Mapping[str, SelectorFunction],
                 namespaces: Mapping[str, str]):
        self.functions = functions
        self.namespaces = namespaces

    def build(self, tree: Tree, declared: Optional[Mapping[str, str]] = None) -> Program:
        """
        Build a Program from a parse tree.

        Args:
            tree: Validated parse tree
            declared: Prefixes the program itself declared

        Returns:
            Executable Program
        """
        fields: List[FieldRule] = []
        program_filter: Optional[NodeTest] = None

        for child in tree.children:
            if not isinstance(child, Tree):
                continue
            if child.data == "field_def":
                fields.append(self._build_field_def(child))
            elif child.data == "filter_decl":
                program_filter = self._build_test(child.children[0])

        return Program(
            fields=tuple(fields),
            namespaces=dict(declared or {}),
            filter=program_filter,
        )

    # ============================================================
    # FIELDS
    # ============================================================

    def _build_field_def(self, node: Tree) -> FieldRule:
        name = str(node.children[0])
        selector = self._build_selector(node.children[1])

        field_type = None
        if len(node.children) > 2:
            type_iri = self._iri(node.children[2].children[0])
            field_type = FieldType(type_iri, FIELD_TYPES[str(type_iri)])

        # fn:count(path) and friends reduce the whole field
        reducer = None
        if (
            isinstance(selector, FunctionSelector)
            and selector.function is not None
            and selector.function.reducer
            and len(selector.arguments) == 1
        ):
            reducer = selector.function
            selector = selector.arguments[0]

        return FieldRule(name=name, selector=selector, reducer=reducer, field_type=field_type)

    # ============================================================
    # SELECTORS
    # ============================================================

    def _build_selector(self, node: Tree) -> Selector:
        method = getattr(self, f"_build_{node.data}", None)
        if method is None:
            raise SelectorSyntaxError(
                f"'{node.data}' cannot be used as a path", *node_position(node)
            )
        return method(node)

    def _build_self_selector(self, node: Tree) -> Selector:
        return SelfSelector()

    def _build_wildcard(self, node: Tree) -> Selector:
        return WildcardSelector()

    def _build_reverse_wildcard(self, node: Tree) -> Selector:
        return ReverseWildcardSelector()

    def _build_property(self, node: Tree) -> Selector:
        return PropertySelector(self._iri(node.children[0]))

    def _build_reverse_property(self, node: Tree) -> Selector:
        return ReversePropertySelector(self._iri(node.children[0]))

    def _build_path(self, node: Tree) -> Selector:
        left, right = node.children
        return PathSelector(self._build_selector(left), self._build_selector(right))

    def _build_union(self, node: Tree) -> Selector:
        left, right = node.children
        return UnionSelector(self._build_selector(left), self._build_selector(right))

    def _build_intersection(self, node: Tree) -> Selector:
        left, right = node.children
        return IntersectionSelector(self._build_selector(left), self._build_selector(right))

    def _build_tested(self, node: Tree) -> Selector:
        selector, test = node.children
        return FilteredSelector(self._build_selector(selector), self._build_test(test))

    def _build_string_constant(self, node: Tree) -> Selector:
        return StringConstantSelector(unquote(str(node.children[0])))

    def _build_recursive_plus(self, node: Tree) -> Selector:
        return RecursiveSelector(self._build_selector(node.children[0]), 1, None)

    def _build_recursive_star(self, node: Tree) -> Selector:
        return RecursiveSelector(self._build_selector(node.children[0]), 0, None)

    def _build_recursive_range(self, node: Tree) -> Selector:
        inner, bounds = node.children
        values = {child.data: int(str(child.children[0])) for child in bounds.children}
        return RecursiveSelector(
            self._build_selector(inner),
            values.get("min_bound", 0),
            values.get("max_bound"),
        )

    # A parenthesised group inside a node test, used where a path is expected

    def _build_test_group(self, node: Tree) -> Selector:
        return self._build_selector(node.children[0])

    def _build_test_or(self, node: Tree) -> Selector:
        return self._build_union(node)

    def _build_test_and(self, node: Tree) -> Selector:
        return self._build_intersection(node)

    def _build_path_test(self, node: Tree) -> Selector:
        return self._build_selector(node.children[0])

    def _build_function_call(self, node: Tree) -> Selector:
        iri = self._iri(node.children[0])
        arguments = tuple(self._build_selector(arg) for arg in node.children[1:])
        return FunctionSelector(
            name=str(iri),
            arguments=arguments,
            function=self.functions.get(str(iri)),
        )

    # ============================================================
    # NODE TESTS
    # ============================================================

    def _build_test(self, node: Tree) -> NodeTest:
        data = node.data
        if data == "test_or":
            left, right = node.children
            return OrTest(self._build_test(left), self._build_test(right))
        if data == "test_and":
            left, right = node.children
            return AndTest(self._build_test(left), self._build_test(right))
        if data == "test_not":
            return NotTest(self._build_test(node.children[0]))
        if data == "test_group":
            return self._build_test(node.children[0])
        if data == "lang_test":
            return LanguageTest(str(node.children[0]))
        if data == "type_test":
            return DatatypeTest(self._iri(node.children[0]))
        if data == "is_a_test":
            return IsATest(self._iri(node.children[0]))
        if data == "path_value_test":
            selector, value = node.children
            return PathValueTest(self._build_selector(selector), self._value(value))
        if data == "value_test":
            return ValueTest(self._value(node.children[0]))
        if data == "path_test":
            inner = node.children[0]
            if isinstance(inner, Tree) and inner.data == "test_group":
                return self._build_test(inner)
            return PathTest(self._build_selector(inner))
        raise SelectorSyntaxError(f"Unsupported test '{data}'", *node_position(node))

    def _value(self, node: Tree):
        token = node.children[0]
        if node.data == "value_iri":
            return self._iri(token)
        if node.data == "value_string":
            return Literal(unquote(str(token)))
        text = str(token)
        if any(c in text for c in ".eE"):
            if "e" in text.lower():
                return Literal(float(text))
            return Literal(Decimal(text))
        return Literal(int(text))

    # ============================================================
    # IDENTIFIERS
    # ============================================================

    def _iri(self, node: Tree) -> URIRef:
        token = node.children[0]
        if node.data == "prefixed_iri":
            return self._expand(token)
        return URIRef(strip_angles(str(token)))

    def _expand(self, token: Token) -> URIRef:
        iri = expand_curie(str(token), self.namespaces)
        if iri is None:
            raise SelectorSyntaxError(
                f"Undefined prefix in '{token}'", token.line, token.column, str(token)
            )
        return URIRef(iri)


# ============================================================
# COMPILATION
# ============================================================

def _issue_to_error(issue: ValidationIssue, source: str) -> ProgramParseError:
    """Map the first validation error to the exception callers catch."""
    lines = source.split("\n")
    fragment = None
    if issue.line and 1 <= issue.line <= len(lines):
        fragment = lines[issue.line - 1].strip()

    if issue.code == IssueCode.EMPTY_PROGRAM:
        return EmptyProgramError(issue.message)
    if issue.code == IssueCode.DUPLICATE_FIELD:
        return DuplicateFieldError(issue.subject, issue.line, issue.column, fragment)
    if issue.code == IssueCode.UNKNOWN_FUNCTION:
        return UnknownSelectorFunction(issue.subject, issue.line, issue.column, fragment)
    if issue.code in (IssueCode.ARITY, IssueCode.UNKNOWN_TYPE):
        return ProgramParseError(issue.message, issue.line, issue.column, fragment)
    return SelectorSyntaxError(issue.message, issue.line, issue.column, fragment)


def compile_program(
    source: str,
    functions: Optional[Mapping[str, SelectorFunction]] = None,
) -> Program:
    """
    Parse, validate and build an LDPath program.

    Args:
        source: LDPath program source
        functions: Function registry keyed by IRI; defaults to the built-ins

    Returns:
        Executable Program

    Raises:
        EmptyProgramError: No field definitions
        DuplicateFieldError: A field name appears twice
        UnknownSelectorFunction: A function is not registered
        SelectorSyntaxError: Grammar errors and malformed identifiers
        ProgramParseError: Other semantic errors (arity, field type)
    """
    if functions is None:
        functions = get_builtin_functions()

    if not source or not source.strip():
        raise EmptyProgramError("Empty program")

    result = LDPathParser().parse(source)
    if not result.success:
        error = result.errors[0]
        message = error.message
        if error.suggestion:
            message += f". {error.suggestion}"
        raise SelectorSyntaxError(message, error.line, error.column, error.context)

    validation = LDPathValidator(functions).validate(result.tree)
    for warning in validation.warnings:
        logger.warning("LDPath program: %s", warning)
    if not validation.valid:
        raise _issue_to_error(validation.errors[0], source)

    declared = collect_namespaces(result.tree)
    builder = ProgramBuilder(functions, effective_namespaces(declared))
    program = builder.build(result.tree, declared)
    logger.debug("Compiled LDPath program with fields %s", program.field_names)
    return program


__all__ = ["ProgramBuilder", "compile_program"]
