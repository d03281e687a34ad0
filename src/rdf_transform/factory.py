"""
Transformation Factory - content type to Transform dispatch.

The factory owns an ordered, immutable registry of TransformDescriptors.
select() parses the requested content type, walks the registry and builds
the first matching transform from the program text. It never executes a
transform and never falls back to a default kind.
"""

import logging
from dataclasses import dataclass, field
from typing import IO, Callable, Dict, Optional, Sequence, Tuple, Union

from .exceptions import ProgramParseError, UnsupportedTransformKind
from .ldpath.transform import LDPATH_MEDIA_TYPE, LDPathTransform
from .result import TransformOutcome, attempt
from .sparql import SPARQL_QUERY_MEDIA_TYPE, SparqlQueryTransform
from .transform import Transform


logger = logging.getLogger(__name__)

ProgramInput = Union[bytes, bytearray, str, IO]


# ============================================================
# MEDIA TYPES
# ============================================================

@dataclass(frozen=True)
class MediaType:
    """A parsed ``type/subtype; name=value`` content type."""
    type: str
    subtype: str
    parameters: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def parse(cls, value: str) -> Optional["MediaType"]:
        """Parse a content type, or None when it is malformed."""
        if not value:
            return None
        essence, *params = value.split(";")
        main, sep, sub = essence.strip().partition("/")
        main, sub = main.strip().lower(), sub.strip().lower()
        if not sep or not main or not sub or "/" in sub or " " in main + sub:
            return None

        parameters = {}
        for param in params:
            name, eq, val = param.partition("=")
            if not eq or not name.strip():
                continue
            parameters[name.strip().lower()] = val.strip().strip('"')
        return cls(main, sub, parameters)

    @property
    def essence(self) -> str:
        return f"{self.type}/{self.subtype}"

    @property
    def is_concrete(self) -> bool:
        return "*" not in (self.type, self.subtype)

    @property
    def charset(self) -> str:
        return self.parameters.get("charset", "utf-8")

    def matches(self, pattern: "MediaType") -> bool:
        """True when this concrete type falls under pattern."""
        if pattern.type != "*" and pattern.type != self.type:
            return False
        return pattern.subtype == "*" or pattern.subtype == self.subtype

    def __str__(self) -> str:
        return self.essence


# ============================================================
# REGISTRY
# ============================================================

TransformConstructor = Callable[[str], Transform]


@dataclass(frozen=True)
class TransformDescriptor:
    """
    One registry entry: a name, the media types it accepts and a constructor.

    ::: This is-in-layer Domain-Layer.
    ::: This is a value-object.
    """
    name: str
    patterns: Tuple[str, ...]
    constructor: TransformConstructor

    def accepts(self, media_type: MediaType) -> bool:
        for pattern in self.patterns:
            parsed = MediaType.parse(pattern)
            if parsed is not None and media_type.matches(parsed):
                return True
        return False


DEFAULT_REGISTRY: Tuple[TransformDescriptor, ...] = (
    TransformDescriptor("ldpath", (LDPATH_MEDIA_TYPE,), LDPathTransform),
    TransformDescriptor("sparql-query", (SPARQL_QUERY_MEDIA_TYPE,), SparqlQueryTransform),
)


# ============================================================
# FACTORY
# ============================================================

class TransformationFactory:
    """
    Selects and builds the Transform for a content type and program.

    Usage:
        factory = TransformationFactory()
        transform = factory.select("application/rdf+ldpath", b"title = dc:title ;")
        result = transform.apply(graph)

    ::: This is-in-layer Domain-Layer.
    ::: This is a factory.
    ::: This is stateless.
    """

    def __init__(self, registry: Optional[Sequence[TransformDescriptor]] = None):
        self._registry: Tuple[TransformDescriptor, ...] = tuple(
            DEFAULT_REGISTRY if registry is None else registry
        )

    @property
    def registry(self) -> Tuple[TransformDescriptor, ...]:
        return self._registry

    def supported_media_types(self) -> Tuple[str, ...]:
        return tuple(p for descriptor in self._registry for p in descriptor.patterns)

    def select(self, media_type: str, program: ProgramInput) -> Transform:
        """
        Build the transform registered for media_type.

        Args:
            media_type: Content type, parameters allowed
            program: Program text as bytes, str or a readable stream

        Returns:
            A Transform bound to the compiled program

        Raises:
            UnsupportedTransformKind: No descriptor accepts the content type
            ProgramParseError: The program cannot be decoded or compiled
        """
        parsed = MediaType.parse(media_type)
        if parsed is None or not parsed.is_concrete:
            logger.debug("Rejected content type %r", media_type)
            raise UnsupportedTransformKind(media_type)

        for descriptor in self._registry:
            if descriptor.accepts(parsed):
                logger.debug("Content type %s selects %s", parsed, descriptor.name)
                source = self._decode(program, parsed.charset)
                return descriptor.constructor(source)

        logger.debug(
            "No transformation registered for %s (supported: %s)",
            parsed, ", ".join(self.supported_media_types()),
        )
        raise UnsupportedTransformKind(media_type)

    def try_select(self, media_type: str, program: ProgramInput) -> TransformOutcome[Transform]:
        """Like select, returning Ok(transform) or Err(TransformError)."""
        return attempt(self.select, media_type, program)

    def select_stored(self, store, name: str,
                      media_type: str = LDPATH_MEDIA_TYPE) -> Transform:
        """Resolve a stored program by name and build its transform."""
        return self.select(media_type, store.resolve(name))

    def _decode(self, program: ProgramInput, charset: str) -> str:
        if hasattr(program, "read"):
            program = program.read()
        if isinstance(program, str):
            return program
        try:
            return bytes(program).decode(charset)
        except LookupError as e:
            raise ProgramParseError(f"Unknown charset '{charset}'") from e
        except UnicodeDecodeError as e:
            raise ProgramParseError(
                f"Program is not valid {charset}: {e.reason} at byte {e.start}"
            ) from e


__all__ = [
    "MediaType",
    "TransformDescriptor",
    "DEFAULT_REGISTRY",
    "TransformationFactory",
    "LDPATH_MEDIA_TYPE",
    "SPARQL_QUERY_MEDIA_TYPE",
]
