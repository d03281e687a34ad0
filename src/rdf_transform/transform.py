"""
Transform abstraction and result model.

Every transformation family implements Transform.apply, a pure function from
a GraphSource to a TransformResult. Callers never branch on the concrete
transform; they branch, if at all, on the result kind when rendering.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Mapping
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Sequence, Tuple

from .graph import GraphSource, node_order_key, node_to_python
from .result import TransformOutcome, attempt


# ============================================================
# RESULTS
# ============================================================

class TransformResult(ABC):
    """
    Format-agnostic output of a transformation.

    ::: This is-in-layer Domain-Layer.
    ::: This is a value-object.
    """

    kind: ClassVar[str] = "result"

    @abstractmethod
    def to_python(self) -> Any:
        """Plain Python view of the result, ready for a renderer."""


class PathResult(TransformResult, Mapping):
    """Ordered mapping of field name to the values extracted for it."""

    kind = "path"

    def __init__(self, fields: Optional[Sequence[Tuple[str, List[Any]]]] = None):
        self._fields: "OrderedDict[str, List[Any]]" = OrderedDict()
        for name, values in fields or ():
            self._fields[name] = list(values)

    def __getitem__(self, name: str) -> List[Any]:
        return list(self._fields[name])

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def to_python(self) -> Dict[str, List[Any]]:
        return {
            name: [node_to_python(v) for v in values]
            for name, values in self._fields.items()
        }

    def __repr__(self) -> str:
        return f"PathResult({dict(self._fields)!r})"


class BooleanResult(TransformResult):
    """Answer of an ASK query."""

    kind = "boolean"

    def __init__(self, value: bool):
        self.value = bool(value)

    def __bool__(self) -> bool:
        return self.value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BooleanResult):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def to_python(self) -> bool:
        return self.value

    def __repr__(self) -> str:
        return f"BooleanResult({self.value})"


class TableResult(TransformResult):
    """Rows of a SELECT query, each an ordered mapping of variable to value."""

    kind = "table"

    def __init__(self, variables: Sequence[str], rows: Sequence[Sequence[Any]]):
        self.variables: Tuple[str, ...] = tuple(variables)
        self.rows: Tuple["OrderedDict[str, Any]", ...] = tuple(
            OrderedDict(zip(self.variables, row)) for row in rows
        )

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator["OrderedDict[str, Any]"]:
        return iter(self.rows)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TableResult):
            return self.variables == other.variables and self.rows == other.rows
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def to_python(self) -> List[Dict[str, Any]]:
        return [
            {name: node_to_python(value) for name, value in row.items()}
            for row in self.rows
        ]

    def __repr__(self) -> str:
        return f"TableResult(variables={list(self.variables)}, rows={len(self.rows)})"


class GraphResult(TransformResult):
    """Graph derived by a CONSTRUCT or DESCRIBE query."""

    kind = "graph"

    def __init__(self, graph: GraphSource):
        self.graph = graph

    def __len__(self) -> int:
        return len(self.graph)

    def to_python(self) -> List[Tuple[Any, Any, Any]]:
        triples = sorted(
            self.graph,
            key=lambda t: (node_order_key(t[0]), node_order_key(t[1]), node_order_key(t[2])),
        )
        return [tuple(node_to_python(n) for n in triple) for triple in triples]

    def __repr__(self) -> str:
        return f"GraphResult(statements={len(self.graph)})"


# ============================================================
# TRANSFORM
# ============================================================

class Transform(ABC):
    """
    A transformation bound to one compiled program.

    ::: This is-in-layer Domain-Layer.
    ::: This is a transform.
    ::: This is stateless.
    """

    media_type: ClassVar[str] = ""

    @abstractmethod
    def apply(self, graph: GraphSource) -> TransformResult:
        """Run the bound program against graph. Must not mutate graph."""

    def try_apply(self, graph: GraphSource) -> TransformOutcome[TransformResult]:
        """Like apply, returning Ok(result) or Err(TransformError)."""
        return attempt(self.apply, graph)


__all__ = [
    "TransformResult",
    "PathResult",
    "BooleanResult",
    "TableResult",
    "GraphResult",
    "Transform",
]
