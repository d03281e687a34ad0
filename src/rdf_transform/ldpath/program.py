"""
Compiled LDPath programs.

A Program is an ordered tuple of FieldRules plus the namespaces it was
written against. Programs are immutable and carry no per-run state, so a
single instance can be executed by many callers at once.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from rdflib.term import Node

from ..graph import GraphSource
from ..transform import PathResult
from .builtins import FieldType, SelectorFunction
from .selectors import NodeTest, Selector


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldRule:
    """
    One named selector within a program.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a value-object.
    """
    name: str
    selector: Selector
    reducer: Optional[SelectorFunction] = None
    field_type: Optional[FieldType] = None

    def evaluate(self, graph: GraphSource, context: Node) -> List[Any]:
        values: List[Any] = self.selector.select(graph, context)
        if self.reducer is not None:
            values = self.reducer([values])
        if self.field_type is not None:
            values = self.field_type.convert(values)
        return values

    def to_ldpath(self) -> str:
        selector = self.selector.to_ldpath()
        if self.reducer is not None:
            selector = f"<{self.reducer.iri}>({selector})"
        if self.field_type is not None:
            selector += f" :: <{self.field_type.iri}>"
        return f"{self.name} = {selector} ;"


@dataclass(frozen=True)
class Program:
    """
    An executable LDPath program.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a value-object.
    """
    fields: Tuple[FieldRule, ...]
    namespaces: Mapping[str, str] = field(default_factory=dict, hash=False)
    filter: Optional[NodeTest] = None

    @property
    def field_names(self) -> List[str]:
        return [rule.name for rule in self.fields]

    def get_field(self, name: str) -> Optional[FieldRule]:
        for rule in self.fields:
            if rule.name == name:
                return rule
        return None

    def execute(self, graph: GraphSource, context: Optional[Node] = None) -> PathResult:
        """
        Evaluate every field against graph, starting at context.

        Args:
            graph: Statements to traverse
            context: Start node; defaults to the graph's root

        Returns:
            PathResult with one entry per field, in declaration order
        """
        if context is None:
            context = graph.root

        if self.filter is not None and not self.filter.accept(graph, context):
            logger.debug("Program filter rejected %s", context.n3())
            return PathResult([(rule.name, []) for rule in self.fields])

        return PathResult([
            (rule.name, rule.evaluate(graph, context)) for rule in self.fields
        ])

    def to_ldpath(self) -> str:
        lines = [f"@prefix {prefix} : <{uri}> ;" for prefix, uri in self.namespaces.items()]
        if self.filter is not None:
            lines.append(f"@filter {self.filter.to_ldpath()} ;")
        lines.extend(rule.to_ldpath() for rule in self.fields)
        return "\n".join(lines)


__all__ = ["FieldRule", "Program"]
