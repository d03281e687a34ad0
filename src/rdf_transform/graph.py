"""
Graph Source - the statements describing one resource plus its root node.

A GraphSource wraps an rdflib Graph and exposes the lookups the
transformations need. Neighbour lookups return finite lists ordered by the
N-Triples form of each node, so traversal over a fixed graph is reproducible
regardless of the underlying store's iteration order.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from rdflib import BNode, Graph, Literal, URIRef
from rdflib.namespace import RDF
from rdflib.term import Node

from .exceptions import TraversalError


Triple = Tuple[Node, Node, Node]


# ============================================================
# NAMESPACES
# ============================================================

FEDORA_NS = "http://fedora.info/definitions/v4/repository#"
FUNCTIONS_NS = "http://www.newmedialab.at/lmf/functions/1.0/"

DEFAULT_NAMESPACES: Dict[str, str] = {
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "rdfs": "http://www.w3.org/2000/01/rdf-schema#",
    "owl": "http://www.w3.org/2002/07/owl#",
    "xsd": "http://www.w3.org/2001/XMLSchema#",
    "dc": "http://purl.org/dc/elements/1.1/",
    "dcterms": "http://purl.org/dc/terms/",
    "foaf": "http://xmlns.com/foaf/0.1/",
    "skos": "http://www.w3.org/2004/02/skos/core#",
    "ldp": "http://www.w3.org/ns/ldp#",
    "fedora": FEDORA_NS,
    "premis": "http://www.loc.gov/premis/rdf/v1#",
    "ebucore": "http://www.ebu.ch/metadata/ontologies/ebucore/ebucore#",
    "fn": FUNCTIONS_NS,
}


# ============================================================
# NODE HELPERS
# ============================================================

def node_order_key(node: Node) -> str:
    """Sort key used to order sibling nodes deterministically."""
    return node.n3()


def ordered_unique(nodes: Iterable[Node]) -> List[Node]:
    """Drop repeated nodes, keeping the first occurrence."""
    seen = set()
    result = []
    for node in nodes:
        if node not in seen:
            seen.add(node)
            result.append(node)
    return result


def node_to_python(value: Any) -> Any:
    """Convert an rdflib node to a plain Python value.

    IRIs become strings, blank nodes become '_:id' strings and literals
    become their native Python value (lexical form when rdflib has no
    mapping for the datatype). Non-node values pass through.
    """
    if isinstance(value, URIRef):
        return str(value)
    if isinstance(value, BNode):
        return value.n3()
    if isinstance(value, Literal):
        converted = value.toPython()
        if isinstance(converted, Literal):
            return str(value)
        return converted
    return value


# ============================================================
# GRAPH SOURCE
# ============================================================

class GraphSource:
    """
    Read-only view over the triples describing a resource.

    Usage:
        source = GraphSource.parse(turtle_text, root="http://example.org/r1")
        titles = source.objects(source.root, DC.title)

    ::: This is-in-layer Domain-Layer.
    ::: This is a value-object.
    """

    def __init__(self, graph: Graph, root: Union[URIRef, BNode, str]):
        if isinstance(root, (URIRef, BNode)):
            self._root = root
        elif isinstance(root, str) and not isinstance(root, Node) and root:
            self._root = URIRef(root)
        else:
            raise TraversalError("Graph root must be an IRI or blank node", repr(root))
        self._graph = graph

    @classmethod
    def from_triples(
        cls,
        triples: Iterable[Triple],
        root: Union[URIRef, BNode, str],
        namespaces: Optional[Dict[str, str]] = None,
    ) -> "GraphSource":
        """Build a source from an iterable of (s, p, o) statements."""
        graph = Graph()
        for prefix, uri in (namespaces or {}).items():
            graph.bind(prefix, uri)
        for triple in triples:
            graph.add(triple)
        return cls(graph, root)

    @classmethod
    def parse(
        cls,
        data: str,
        root: Union[URIRef, BNode, str],
        format: str = "turtle",
    ) -> "GraphSource":
        """Build a source from serialized RDF."""
        graph = Graph()
        graph.parse(data=data, format=format)
        return cls(graph, root)

    @property
    def root(self) -> Union[URIRef, BNode]:
        return self._root

    @property
    def graph(self) -> Graph:
        """The underlying rdflib graph. Callers must not mutate it."""
        return self._graph

    def statements(
        self,
        subject: Optional[Node] = None,
        predicate: Optional[Node] = None,
        obj: Optional[Node] = None,
    ) -> Iterator[Triple]:
        """Lazily iterate the statements matching a pattern."""
        return self._graph.triples((subject, predicate, obj))

    def objects(self, node: Node, predicate: URIRef) -> List[Node]:
        return sorted(set(self._graph.objects(node, predicate)), key=node_order_key)

    def subjects(self, predicate: URIRef, node: Node) -> List[Node]:
        return sorted(set(self._graph.subjects(predicate, node)), key=node_order_key)

    def outgoing(self, node: Node) -> List[Node]:
        """Objects of every statement whose subject is node."""
        return sorted(
            {o for _, o in self._graph.predicate_objects(node)}, key=node_order_key
        )

    def incoming(self, node: Node) -> List[Node]:
        """Subjects of every statement whose object is node."""
        return sorted(
            {s for s, _ in self._graph.subject_predicates(node)}, key=node_order_key
        )

    def has_type(self, node: Node, rdf_class: URIRef) -> bool:
        return (node, RDF.type, rdf_class) in self._graph

    def namespaces(self) -> Dict[str, str]:
        return {prefix: str(uri) for prefix, uri in self._graph.namespaces()}

    def __iter__(self) -> Iterator[Triple]:
        return iter(self._graph)

    def __len__(self) -> int:
        return len(self._graph)

    def __contains__(self, triple: Triple) -> bool:
        return triple in self._graph

    def __repr__(self) -> str:
        return f"GraphSource(root={self._root.n3()}, statements={len(self)})"


__all__ = [
    "Triple",
    "GraphSource",
    "DEFAULT_NAMESPACES",
    "FEDORA_NS",
    "FUNCTIONS_NS",
    "node_order_key",
    "ordered_unique",
    "node_to_python",
]
