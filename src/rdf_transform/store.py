"""Program Store for named transformation programs.

Programs are kept under keys of the form::

    {config_folder}{name}/{program_filename}

which by default is ``/system/transform/{name}/ldpath_program.txt``.
The ``default`` and ``deluxe`` programs are bundled with the package and
written to the store the first time they are needed. An existing program is
never overwritten by bootstrapping.

Two backends are provided:
- MemoryProgramStore keeps programs in a dict
- FileProgramStore mirrors the key layout in a directory tree
"""

import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from .exceptions import ProgramStoreError, TransformNotFound
from .result import TransformOutcome, attempt


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FOLDER = "/system/transform/"
DEFAULT_PROGRAM_FILENAME = "ldpath_program.txt"
BUNDLED_PROGRAMS_DIR = Path(__file__).parent / "programs"
DEFAULT_PROGRAM_NAMES = ("default", "deluxe")


def load_bundled_programs() -> Dict[str, str]:
    """Read the programs shipped with the package, keyed by name."""
    programs = {}
    for name in DEFAULT_PROGRAM_NAMES:
        path = BUNDLED_PROGRAMS_DIR / name / DEFAULT_PROGRAM_FILENAME
        programs[name] = path.read_text(encoding="utf-8")
    return programs


def is_valid_name(name: str) -> bool:
    """True for a single, non-empty path segment."""
    if not name or name in (".", ".."):
        return False
    return not any(c in name for c in ("/", "\\", "\x00"))


class ProgramStore(ABC):
    """
    Abstract base for named program storage.

    Subclasses implement raw reads and writes; resolve, bootstrap and save
    are shared. The check-then-write of bootstrapping runs under a per-store
    lock, so concurrent first use leaves exactly one body in place.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a repository.
    """

    def __init__(
        self,
        config_folder: str = DEFAULT_CONFIG_FOLDER,
        program_filename: str = DEFAULT_PROGRAM_FILENAME,
        defaults: Optional[Dict[str, str]] = None,
    ):
        if not config_folder.endswith("/"):
            config_folder += "/"
        self.config_folder = config_folder
        self.program_filename = program_filename
        self._defaults = dict(load_bundled_programs() if defaults is None else defaults)
        self._lock = threading.Lock()

    # ============================================================
    # BACKEND
    # ============================================================

    @abstractmethod
    def _read(self, key: str) -> Optional[str]:
        """Program text stored under key, or None when absent."""

    @abstractmethod
    def _write(self, key: str, source: str) -> None:
        """Store source under key, replacing any previous text."""

    @abstractmethod
    def _stored_names(self) -> List[str]:
        """Names of the programs currently persisted."""

    # ============================================================
    # OPERATIONS
    # ============================================================

    @property
    def default_names(self) -> List[str]:
        return list(self._defaults)

    def key_for(self, name: str) -> str:
        return f"{self.config_folder}{name}/{self.program_filename}"

    def resolve(self, name: str) -> str:
        """
        Get the program text stored under name.

        Bundled programs are bootstrapped on first access.

        Raises:
            TransformNotFound: No program is stored or bundled under name
            ProgramStoreError: The backend failed
        """
        if not is_valid_name(name):
            raise TransformNotFound(name)

        key = self.key_for(name)
        source = self._read(key)
        if source is not None:
            return source

        if name in self._defaults:
            return self._bootstrap_one(name)

        logger.debug("No program stored at %s", key)
        raise TransformNotFound(name)

    def try_resolve(self, name: str) -> TransformOutcome[str]:
        """Like resolve, returning Ok(source) or Err(TransformError)."""
        return attempt(self.resolve, name)

    def bootstrap(self) -> None:
        """Seed every bundled program that is not stored yet."""
        for name in self.default_names:
            self._bootstrap_one(name)

    def save(self, name: str, source: str) -> None:
        """Store source under name, replacing any existing program."""
        if not is_valid_name(name):
            raise ProgramStoreError(f"Invalid program name '{name}'", key=name)
        key = self.key_for(name)
        with self._lock:
            self._write(key, source)
        logger.debug("Saved program %s", key)

    def exists(self, name: str) -> bool:
        return is_valid_name(name) and self._read(self.key_for(name)) is not None

    def names(self) -> List[str]:
        """Stored program names plus the bundled ones, sorted."""
        return sorted(set(self._stored_names()) | set(self.default_names))

    def _bootstrap_one(self, name: str) -> str:
        key = self.key_for(name)
        with self._lock:
            existing = self._read(key)
            if existing is not None:
                return existing
            logger.debug("Bootstrapping program %s", key)
            self._write(key, self._defaults[name])
            return self._defaults[name]


class MemoryProgramStore(ProgramStore):
    """Programs kept in process memory."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._programs: Dict[str, str] = {}

    def _read(self, key: str) -> Optional[str]:
        return self._programs.get(key)

    def _write(self, key: str, source: str) -> None:
        self._programs[key] = source

    def _stored_names(self) -> List[str]:
        prefix = self.config_folder
        suffix = "/" + self.program_filename
        return [
            key[len(prefix):-len(suffix)]
            for key in self._programs
            if key.startswith(prefix) and key.endswith(suffix)
        ]


class FileProgramStore(ProgramStore):
    """
    Programs kept as files below a root directory.

    The key ``/system/transform/default/ldpath_program.txt`` maps to
    ``{root}/system/transform/default/ldpath_program.txt``.
    """

    def __init__(self, root: Union[str, Path], *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        return self.root / key.lstrip("/")

    def _read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ProgramStoreError(f"Cannot read program {key}: {e}", key=key) from e

    def _write(self, key: str, source: str) -> None:
        path = self.path_for(key)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(source)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ProgramStoreError(f"Cannot write program {key}: {e}", key=key) from e

    def _stored_names(self) -> List[str]:
        folder = self.path_for(self.config_folder)
        if not folder.is_dir():
            return []
        return [
            entry.name for entry in folder.iterdir()
            if (entry / self.program_filename).is_file()
        ]


__all__ = [
    "ProgramStore",
    "MemoryProgramStore",
    "FileProgramStore",
    "DEFAULT_CONFIG_FOLDER",
    "DEFAULT_PROGRAM_FILENAME",
    "DEFAULT_PROGRAM_NAMES",
    "load_bundled_programs",
    "is_valid_name",
]
