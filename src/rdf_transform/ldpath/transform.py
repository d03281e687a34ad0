"""LDPath transformation: projects a resource's graph into named fields."""

import logging
from typing import Mapping, Optional

from ..graph import GraphSource
from ..transform import PathResult, Transform
from .builder import compile_program
from .builtins import SelectorFunction
from .program import Program


logger = logging.getLogger(__name__)

LDPATH_MEDIA_TYPE = "application/rdf+ldpath"


class LDPathTransform(Transform):
    """
    Runs a compiled LDPath program against the graph's root node.

    The program is compiled when the transform is created, so malformed
    source fails here and never during apply.

    ::: This is-in-layer Domain-Layer.
    ::: This is a transform.
    ::: This is stateless.
    """

    media_type = LDPATH_MEDIA_TYPE

    def __init__(self, source: str,
                 functions: Optional[Mapping[str, SelectorFunction]] = None):
        self.source = source
        self.program: Program = compile_program(source, functions)

    @classmethod
    def from_program(cls, program: Program) -> "LDPathTransform":
        """Wrap an already compiled program."""
        transform = cls.__new__(cls)
        transform.source = program.to_ldpath()
        transform.program = program
        return transform

    def apply(self, graph: GraphSource) -> PathResult:
        logger.debug("Applying LDPath program %s to %s", self.program.field_names, graph.root.n3())
        return self.program.execute(graph)

    def __repr__(self) -> str:
        return f"LDPathTransform(fields={self.program.field_names})"


__all__ = ["LDPathTransform", "LDPATH_MEDIA_TYPE"]
