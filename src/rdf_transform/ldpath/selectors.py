"""
LDPath Selectors and Node Tests.

A selector maps one context node to an ordered list of nodes. Selecting
from several context nodes concatenates the per-node results in order and
keeps the first occurrence of every node, so a step always turns a finite
node sequence into another finite node sequence.

Selector and test objects are immutable and hold no evaluation state.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from rdflib import Literal, URIRef
from rdflib.namespace import XSD
from rdflib.term import Node

from ..exceptions import TraversalError, UnknownSelectorFunction
from ..graph import GraphSource, ordered_unique
from .builtins import SelectorFunction


# ============================================================
# SELECTORS
# ============================================================

class Selector(ABC):
    """
    Abstract base for path selectors.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a selector.
    ::: This is stateless.
    """

    @abstractmethod
    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        """Nodes reached from node, in traversal order, without repeats."""

    @abstractmethod
    def to_ldpath(self) -> str:
        """Render the selector back to LDPath syntax."""

    def select_all(self, graph: GraphSource, nodes: Iterable[Node]) -> List[Node]:
        """Apply the selector to each node and merge the results in order."""
        return ordered_unique(
            result for node in nodes for result in self.select(graph, node)
        )

    def __str__(self) -> str:
        return self.to_ldpath()


def _check_predicate(iri: Node, selector: Selector) -> None:
    if not isinstance(iri, URIRef):
        raise TraversalError("Selector step needs an IRI predicate", selector.to_ldpath())


@dataclass(frozen=True)
class SelfSelector(Selector):
    """``.``: the context node itself."""

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        return [node]

    def to_ldpath(self) -> str:
        return "."


@dataclass(frozen=True)
class PropertySelector(Selector):
    """``p``: objects of outgoing p statements."""
    iri: URIRef

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        _check_predicate(self.iri, self)
        if isinstance(node, Literal):
            return []
        return graph.objects(node, self.iri)

    def to_ldpath(self) -> str:
        return f"<{self.iri}>"


@dataclass(frozen=True)
class ReversePropertySelector(Selector):
    """``^p``: subjects of incoming p statements."""
    iri: URIRef

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        _check_predicate(self.iri, self)
        return graph.subjects(self.iri, node)

    def to_ldpath(self) -> str:
        return f"^<{self.iri}>"


@dataclass(frozen=True)
class WildcardSelector(Selector):
    """``*``: objects of every outgoing statement."""

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        if isinstance(node, Literal):
            return []
        return graph.outgoing(node)

    def to_ldpath(self) -> str:
        return "*"


@dataclass(frozen=True)
class ReverseWildcardSelector(Selector):
    """``^*``: subjects of every incoming statement."""

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        return graph.incoming(node)

    def to_ldpath(self) -> str:
        return "^*"


@dataclass(frozen=True)
class PathSelector(Selector):
    """``left / right``"""
    left: Selector
    right: Selector

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        return self.right.select_all(graph, self.left.select(graph, node))

    def to_ldpath(self) -> str:
        return f"{self.left.to_ldpath()} / {self.right.to_ldpath()}"


@dataclass(frozen=True)
class UnionSelector(Selector):
    """``left | right``: left results first, then new right results."""
    left: Selector
    right: Selector

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        return ordered_unique(
            self.left.select(graph, node) + self.right.select(graph, node)
        )

    def to_ldpath(self) -> str:
        return f"({self.left.to_ldpath()} | {self.right.to_ldpath()})"


@dataclass(frozen=True)
class IntersectionSelector(Selector):
    """``left & right``: left results also reached by right."""
    left: Selector
    right: Selector

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        right = set(self.right.select(graph, node))
        return [n for n in self.left.select(graph, node) if n in right]

    def to_ldpath(self) -> str:
        return f"({self.left.to_ldpath()} & {self.right.to_ldpath()})"


@dataclass(frozen=True)
class RecursiveSelector(Selector):
    """
    ``(s)+``, ``(s)*`` and ``(s){min,max}``.

    Level n holds the nodes reachable by exactly n applications of the inner
    selector; levels min..max are collected in order. An unbounded walk ends
    once a level past the lower bound brings no node that is not already
    collected, so cycles in the data end it.
    """
    selector: Selector
    min_depth: int = 1
    max_depth: Optional[int] = None

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        results: List[Node] = []
        collected = set()
        level = [node]
        depth = 0
        while True:
            if depth >= self.min_depth:
                if depth > self.min_depth and collected.issuperset(level):
                    break
                results.extend(level)
                collected.update(level)
            if self.max_depth is not None and depth >= self.max_depth:
                break
            level = ordered_unique(
                n for current in level for n in self.selector.select(graph, current)
            )
            if not level:
                break
            depth += 1
        return ordered_unique(results)

    def to_ldpath(self) -> str:
        inner = f"({self.selector.to_ldpath()})"
        if self.min_depth == 1 and self.max_depth is None:
            return inner + "+"
        if self.min_depth == 0 and self.max_depth is None:
            return inner + "*"
        upper = "" if self.max_depth is None else str(self.max_depth)
        return f"{inner}{{{self.min_depth},{upper}}}"


@dataclass(frozen=True)
class StringConstantSelector(Selector):
    """``"text"``: a constant literal, whatever the context node."""
    value: str

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        return [Literal(self.value)]

    def to_ldpath(self) -> str:
        escaped = self.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'


@dataclass(frozen=True)
class FunctionSelector(Selector):
    """``fn:name(arg, ...)``: applies a function to its argument selections."""
    name: str
    arguments: Tuple[Selector, ...] = ()
    function: Optional[SelectorFunction] = None

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        if self.function is None:
            raise UnknownSelectorFunction(self.name, fragment=self.to_ldpath())
        args = [arg.select(graph, node) for arg in self.arguments]
        return self.function(args)

    def to_ldpath(self) -> str:
        args = ", ".join(arg.to_ldpath() for arg in self.arguments)
        return f"<{self.name}>({args})"


@dataclass(frozen=True)
class FilteredSelector(Selector):
    """``selector[test]``: keeps the selected nodes that pass test."""
    selector: Selector
    test: "NodeTest"

    def select(self, graph: GraphSource, node: Node) -> List[Node]:
        return [n for n in self.selector.select(graph, node) if self.test.accept(graph, n)]

    def to_ldpath(self) -> str:
        inner = self.selector.to_ldpath()
        if isinstance(self.selector, PathSelector):
            inner = f"({inner})"
        return f"{inner}[{self.test.to_ldpath()}]"


# ============================================================
# NODE TESTS
# ============================================================

class NodeTest(ABC):
    """
    Abstract base for node tests used in ``[...]`` and ``@filter``.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a predicate.
    ::: This is stateless.
    """

    @abstractmethod
    def accept(self, graph: GraphSource, node: Node) -> bool:
        """True when node passes the test."""

    @abstractmethod
    def to_ldpath(self) -> str:
        """Render the test back to LDPath syntax."""

    def __str__(self) -> str:
        return self.to_ldpath()


def _is_number(value) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def value_matches(candidate: Node, value: Node) -> bool:
    """Compare a graph node with a test value.

    A plain string value matches any literal with the same lexical form,
    whatever its language tag or datatype. Numeric values match numeric
    literals of any numeric datatype with the same value.
    """
    if candidate == value:
        return True
    if isinstance(value, Literal) and isinstance(candidate, Literal):
        expected, actual = value.toPython(), candidate.toPython()
        if _is_number(expected) and _is_number(actual):
            return expected == actual
    if (
        isinstance(value, Literal)
        and value.datatype is None
        and value.language is None
        and isinstance(candidate, Literal)
    ):
        return str(candidate) == str(value)
    return False


def render_value(value: Node) -> str:
    """LDPath text for a test value."""
    if isinstance(value, URIRef):
        return f"<{value}>"
    if isinstance(value, Literal) and value.datatype is not None and value.datatype != XSD.string:
        return str(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass(frozen=True)
class LanguageTest(NodeTest):
    """``@en``: literals with the given language tag; ``@none`` for untagged."""
    language: str

    def accept(self, graph: GraphSource, node: Node) -> bool:
        if not isinstance(node, Literal):
            return False
        if self.language.lower() == "none":
            return node.language is None
        return (node.language or "").lower() == self.language.lower()

    def to_ldpath(self) -> str:
        return f"@{self.language}"


@dataclass(frozen=True)
class DatatypeTest(NodeTest):
    """``^^xsd:int``: literals with the given datatype."""
    datatype: URIRef

    def accept(self, graph: GraphSource, node: Node) -> bool:
        if not isinstance(node, Literal):
            return False
        datatype = node.datatype
        if datatype is None and node.language is None:
            datatype = XSD.string
        return datatype == self.datatype

    def to_ldpath(self) -> str:
        return f"^^<{self.datatype}>"


@dataclass(frozen=True)
class IsATest(NodeTest):
    """``is-a C``: nodes typed as C."""
    rdf_class: URIRef

    def accept(self, graph: GraphSource, node: Node) -> bool:
        if isinstance(node, Literal):
            return False
        return graph.has_type(node, self.rdf_class)

    def to_ldpath(self) -> str:
        return f"is-a <{self.rdf_class}>"


@dataclass(frozen=True)
class PathValueTest(NodeTest):
    """``path is value``: the path reaches value from the node."""
    selector: Selector
    value: Node

    def accept(self, graph: GraphSource, node: Node) -> bool:
        return any(value_matches(n, self.value) for n in self.selector.select(graph, node))

    def to_ldpath(self) -> str:
        return f"{self.selector.to_ldpath()} is {render_value(self.value)}"


@dataclass(frozen=True)
class ValueTest(NodeTest):
    """``is value``: the node itself equals value."""
    value: Node

    def accept(self, graph: GraphSource, node: Node) -> bool:
        return value_matches(node, self.value)

    def to_ldpath(self) -> str:
        return f"is {render_value(self.value)}"


@dataclass(frozen=True)
class PathTest(NodeTest):
    """``[path]``: the path reaches at least one node."""
    selector: Selector

    def accept(self, graph: GraphSource, node: Node) -> bool:
        return bool(self.selector.select(graph, node))

    def to_ldpath(self) -> str:
        text = self.selector.to_ldpath()
        if isinstance(self.selector, (UnionSelector, IntersectionSelector)):
            # a bare "(a & b)" inside [...] reads as a group of tests
            return f"{text}/."
        return text


@dataclass(frozen=True)
class NotTest(NodeTest):
    test: NodeTest

    def accept(self, graph: GraphSource, node: Node) -> bool:
        return not self.test.accept(graph, node)

    def to_ldpath(self) -> str:
        return f"!{_operand(self.test, AndTest, OrTest)}"


@dataclass(frozen=True)
class AndTest(NodeTest):
    left: NodeTest
    right: NodeTest

    def accept(self, graph: GraphSource, node: Node) -> bool:
        return self.left.accept(graph, node) and self.right.accept(graph, node)

    def to_ldpath(self) -> str:
        return f"{_operand(self.left, OrTest)} & {_operand(self.right, AndTest, OrTest)}"


@dataclass(frozen=True)
class OrTest(NodeTest):
    left: NodeTest
    right: NodeTest

    def accept(self, graph: GraphSource, node: Node) -> bool:
        return self.left.accept(graph, node) or self.right.accept(graph, node)

    def to_ldpath(self) -> str:
        return f"{self.left.to_ldpath()} | {_operand(self.right, OrTest)}"


def _operand(test: NodeTest, *grouped: type) -> str:
    """Render test, in parentheses when it is one of the grouped kinds."""
    text = test.to_ldpath()
    if isinstance(test, grouped):
        return f"({text})"
    return text


__all__ = [
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
    "value_matches",
]
