"""
rdf-transform - run LDPath and SPARQL programs against resource graphs.

Usage:
    from rdf_transform import GraphSource, TransformationFactory

    graph = GraphSource.parse(turtle, root="http://example.org/r1")
    factory = TransformationFactory()
    transform = factory.select("application/rdf+ldpath", "title = dc:title ;")
    print(transform.apply(graph).to_python())
"""

__version__ = "0.1.0"

from .exceptions import (
    TransformError,
    TransformNotFound,
    UnsupportedTransformKind,
    ProgramParseError,
    EmptyProgramError,
    DuplicateFieldError,
    SelectorSyntaxError,
    UnknownSelectorFunction,
    InvalidQuerySyntax,
    TraversalError,
    ProgramStoreError,
)
from .result import Result, Ok, Err, attempt
from .graph import GraphSource, DEFAULT_NAMESPACES
from .transform import (
    Transform,
    TransformResult,
    PathResult,
    BooleanResult,
    TableResult,
    GraphResult,
)
from .ldpath import LDPathTransform, compile_program
from .sparql import SparqlQueryTransform
from .factory import (
    TransformationFactory,
    TransformDescriptor,
    MediaType,
    LDPATH_MEDIA_TYPE,
    SPARQL_QUERY_MEDIA_TYPE,
)
from .store import ProgramStore, MemoryProgramStore, FileProgramStore
from .config import ConfigLoader, TransformSettings, get_settings
from .service import TransformService


__all__ = [
    "__version__",
    # Errors
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
    "Result",
    "Ok",
    "Err",
    "attempt",
    # Graph and results
    "GraphSource",
    "DEFAULT_NAMESPACES",
    "Transform",
    "TransformResult",
    "PathResult",
    "BooleanResult",
    "TableResult",
    "GraphResult",
    # Transforms
    "LDPathTransform",
    "compile_program",
    "SparqlQueryTransform",
    "TransformationFactory",
    "TransformDescriptor",
    "MediaType",
    "LDPATH_MEDIA_TYPE",
    "SPARQL_QUERY_MEDIA_TYPE",
    # Store and service
    "ProgramStore",
    "MemoryProgramStore",
    "FileProgramStore",
    "ConfigLoader",
    "TransformSettings",
    "get_settings",
    "TransformService",
]
