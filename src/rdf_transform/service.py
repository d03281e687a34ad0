"""
Transform Service - entry points for named and inline transformations.

Ties the program store and the transformation factory together the way an
endpoint uses them: a named program is resolved from the store, an inline
program arrives with its content type, and either way the factory picks the
transform that runs against the resource graph.
"""

import logging
from pathlib import Path
from typing import Optional

from .config import TransformSettings, get_settings
from .factory import LDPATH_MEDIA_TYPE, ProgramInput, TransformationFactory
from .graph import GraphSource
from .logging_config import configure_logging
from .result import TransformOutcome, attempt
from .store import FileProgramStore, MemoryProgramStore, ProgramStore
from .transform import TransformResult


logger = logging.getLogger(__name__)


class TransformService:
    """
    Runs stored and inline programs against resource graphs.

    Usage:
        service = TransformService(TransformationFactory(), MemoryProgramStore())
        service.setup()
        result = service.evaluate_program("default", graph)

    ::: This is-in-layer Service-Layer.
    ::: This is a service.
    ::: This is stateless.
    """

    def __init__(self, factory: TransformationFactory, store: ProgramStore):
        self.factory = factory
        self.store = store

    @classmethod
    def from_settings(cls, settings: Optional[TransformSettings] = None,
                      project_root: Optional[Path] = None) -> "TransformService":
        """
        Build a service with the store and logging the settings describe.

        Args:
            settings: Resolved settings; loaded from rdf_transform.json when None
            project_root: Where to look for rdf_transform.json
        """
        if settings is None:
            settings = get_settings(project_root)
        configure_logging(settings.log_level)

        if settings.store_dir:
            store: ProgramStore = FileProgramStore(
                settings.store_dir,
                config_folder=settings.config_folder,
                program_filename=settings.program_filename,
            )
        else:
            store = MemoryProgramStore(
                config_folder=settings.config_folder,
                program_filename=settings.program_filename,
            )
        return cls(TransformationFactory(), store)

    def setup(self) -> None:
        """Seed the bundled programs into the store."""
        self.store.bootstrap()
        logger.info("Program store ready with %s", ", ".join(self.store.names()))

    def evaluate_program(self, name: str, graph: GraphSource,
                         media_type: str = LDPATH_MEDIA_TYPE) -> TransformResult:
        """
        Run the stored program called name against graph.

        Raises:
            TransformNotFound: No program is stored under name
            UnsupportedTransformKind: media_type has no registered transform
            ProgramParseError: The stored program is malformed
        """
        logger.info("Evaluating stored program '%s' on %s", name, graph.root.n3())
        transform = self.factory.select_stored(self.store, name, media_type)
        return transform.apply(graph)

    def evaluate_transform(self, content_type: str, body: ProgramInput,
                           graph: GraphSource) -> TransformResult:
        """
        Run an inline program against graph.

        Raises:
            UnsupportedTransformKind: content_type has no registered transform
            ProgramParseError: The program is malformed
        """
        logger.info("Evaluating inline %s program on %s", content_type, graph.root.n3())
        transform = self.factory.select(content_type, body)
        return transform.apply(graph)

    def try_evaluate_program(self, name: str, graph: GraphSource,
                             media_type: str = LDPATH_MEDIA_TYPE) -> TransformOutcome[TransformResult]:
        return attempt(self.evaluate_program, name, graph, media_type)

    def try_evaluate_transform(self, content_type: str, body: ProgramInput,
                               graph: GraphSource) -> TransformOutcome[TransformResult]:
        return attempt(self.evaluate_transform, content_type, body, graph)
