"""
SPARQL query transformation.

Query text is compiled once with rdflib's SPARQL engine when the transform
is created; apply only evaluates the prepared query against a graph.
"""

import logging
from typing import List, Optional

from rdflib import Graph
from rdflib.plugins.sparql import prepareQuery

from .exceptions import InvalidQuerySyntax
from .graph import DEFAULT_NAMESPACES, GraphSource
from .transform import (
    BooleanResult,
    GraphResult,
    TableResult,
    Transform,
    TransformResult,
)


logger = logging.getLogger(__name__)

SPARQL_QUERY_MEDIA_TYPE = "application/sparql-query"


class SparqlQueryTransform(Transform):
    """
    Evaluates a SPARQL 1.1 query over the resource graph.

    ASK gives a BooleanResult, SELECT a TableResult and CONSTRUCT or
    DESCRIBE a GraphResult rooted at the input graph's root.

    ::: This is-in-layer Domain-Layer.
    ::: This is a transform.
    ::: This is stateless.
    """

    media_type = SPARQL_QUERY_MEDIA_TYPE

    def __init__(self, query: str):
        self.query = query
        try:
            self.prepared = prepareQuery(query, initNs=DEFAULT_NAMESPACES)
        except Exception as e:
            # pyparsing and rdflib raise a variety of types for bad text
            raise InvalidQuerySyntax(
                f"Invalid SPARQL query: {e}",
                line=getattr(e, "lineno", None),
                column=getattr(e, "col", None),
                fragment=_first_line(query),
            ) from e
        self.query_type: str = self.prepared.algebra.name
        logger.debug("Prepared SPARQL %s query", self.query_type)

    def apply(self, graph: GraphSource) -> TransformResult:
        result = graph.graph.query(self.prepared)

        if result.type == "ASK":
            return BooleanResult(bool(result.askAnswer))

        if result.type == "SELECT":
            variables = [str(v) for v in result.vars or []]
            rows = [
                [row[i] for i in range(len(variables))]
                for row in result
            ]
            return TableResult(variables, rows)

        derived = Graph()
        for prefix, namespace in graph.namespaces().items():
            derived.bind(prefix, namespace)
        if result.graph is not None:
            for triple in result.graph:
                derived.add(triple)
        return GraphResult(GraphSource(derived, graph.root))

    def __repr__(self) -> str:
        return f"SparqlQueryTransform({_first_line(self.query)!r})"


def _first_line(text: str) -> Optional[str]:
    lines: List[str] = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[0] if lines else None


__all__ = ["SparqlQueryTransform", "SPARQL_QUERY_MEDIA_TYPE"]
