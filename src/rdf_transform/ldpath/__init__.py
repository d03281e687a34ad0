"""
LDPath - a small declarative path language over RDF graphs.

A program declares prefixes, an optional node filter and named fields:

    @prefix dc : <http://purl.org/dc/elements/1.1/> ;
    title = dc:title :: xsd:string ;
    parts = (dcterms:hasPart)+ ;

Usage:
    from rdf_transform.ldpath import compile_program

    program = compile_program(source)
    result = program.execute(graph)
"""

from .parser import (
    LDPathParser,
    ParseResult,
    ParseError,
    parse_ldpath,
)

from .validator import (
    LDPathValidator,
    ValidationResult,
    ValidationIssue,
    Severity,
    IssueCode,
    validate_ldpath,
)

from .builtins import (
    SelectorFunction,
    FieldType,
    BUILTIN_FUNCTIONS,
    FIELD_TYPES,
    get_builtin_functions,
)

from .selectors import (
    Selector,
    SelfSelector,
    PropertySelector,
    ReversePropertySelector,
    WildcardSelector,
    ReverseWildcardSelector,
    PathSelector,
    UnionSelector,
    IntersectionSelector,
    RecursiveSelector,
    StringConstantSelector,
    FunctionSelector,
    FilteredSelector,
    NodeTest,
    LanguageTest,
    DatatypeTest,
    IsATest,
    PathValueTest,
    ValueTest,
    PathTest,
    NotTest,
    AndTest,
    OrTest,
)

from .program import FieldRule, Program
from .builder import ProgramBuilder, compile_program
from .transform import LDPathTransform, LDPATH_MEDIA_TYPE


__all__ = [
    # Parser
    "LDPathParser",
    "ParseResult",
    "ParseError",
    "parse_ldpath",
    # Validator
    "LDPathValidator",
    "ValidationResult",
    "ValidationIssue",
    "Severity",
    "IssueCode",
    "validate_ldpath",
    # Functions and types
    "SelectorFunction",
    "FieldType",
    "BUILTIN_FUNCTIONS",
    "FIELD_TYPES",
    "get_builtin_functions",
    # Selectors and tests
    "Selector",
    "SelfSelector",
    "PropertySelector",
    "ReversePropertySelector",
    "WildcardSelector",
    "ReverseWildcardSelector",
    "PathSelector",
    "UnionSelector",
    "IntersectionSelector",
    "RecursiveSelector",
    "StringConstantSelector",
    "FunctionSelector",
    "FilteredSelector",
    "NodeTest",
    "LanguageTest",
    "DatatypeTest",
    "IsATest",
    "PathValueTest",
    "ValueTest",
    "PathTest",
    "NotTest",
    "AndTest",
    "OrTest",
    # Programs
    "FieldRule",
    "Program",
    "ProgramBuilder",
    "compile_program",
    "LDPathTransform",
    "LDPATH_MEDIA_TYPE",
]
