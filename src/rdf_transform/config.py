"""
Configuration Loader

Loads rdf-transform settings from rdf_transform.json in the project root.
Environment variables always take precedence over config file values.

Config file location (in order of precedence):
1. RDF_TRANSFORM_PROJECT_ROOT/rdf_transform.json (if RDF_TRANSFORM_PROJECT_ROOT is set)
2. CWD/rdf_transform.json

Supported settings in rdf_transform.json:
{
    "store_dir": "/var/lib/transform",        // -> RDF_TRANSFORM_STORE_DIR
    "config_folder": "/system/transform/",    // -> RDF_TRANSFORM_CONFIG_FOLDER
    "program_filename": "ldpath_program.txt", // -> RDF_TRANSFORM_PROGRAM_FILE
    "log_level": "INFO"                       // -> RDF_TRANSFORM_LOG_LEVEL
}

Without a store_dir, programs are kept in memory.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .store import DEFAULT_CONFIG_FOLDER, DEFAULT_PROGRAM_FILENAME


logger = logging.getLogger(__name__)

CONFIG_FILENAME = "rdf_transform.json"


class TransformSettings(BaseModel):
    """Resolved settings for one engine instance"""
    model_config = ConfigDict(frozen=True)

    store_dir: Optional[str] = None  # None keeps programs in memory
    config_folder: str = DEFAULT_CONFIG_FOLDER
    program_filename: str = Field(DEFAULT_PROGRAM_FILENAME, min_length=1)
    log_level: str = "INFO"

    @field_validator("config_folder")
    @classmethod
    def _folder_ends_with_slash(cls, value: str) -> str:
        return value if value.endswith("/") else value + "/"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


class ConfigLoader:
    """
    Loads configuration from rdf_transform.json file.

    ::: This is-in-layer Service-Layer.
    ::: This is a loader.
    ::: This is stateless.

    Priority: Environment variables > rdf_transform.json > defaults
    """

    # Mapping from rdf_transform.json keys to environment variable names
    CONFIG_KEY_TO_ENV = {
        "store_dir": "RDF_TRANSFORM_STORE_DIR",
        "config_folder": "RDF_TRANSFORM_CONFIG_FOLDER",
        "program_filename": "RDF_TRANSFORM_PROGRAM_FILE",
        "log_level": "RDF_TRANSFORM_LOG_LEVEL",
    }

    DEFAULTS = {
        "store_dir": None,
        "config_folder": DEFAULT_CONFIG_FOLDER,
        "program_filename": DEFAULT_PROGRAM_FILENAME,
        "log_level": "INFO",
    }

    def __init__(self):
        self._config: Dict[str, Any] = {}
        self._config_path: Optional[Path] = None
        self._loaded = False

    def load(self, project_root: Optional[Path] = None) -> bool:
        """
        Load configuration from rdf_transform.json.

        Args:
            project_root: Project root directory. If None, uses
                RDF_TRANSFORM_PROJECT_ROOT or CWD.

        Returns:
            True if config file was found and loaded, False otherwise.
        """
        if self._loaded:
            return self._config_path is not None

        # Determine project root
        if project_root is None:
            env_root = os.getenv("RDF_TRANSFORM_PROJECT_ROOT")
            if env_root:
                project_root = Path(env_root)
            else:
                project_root = Path.cwd()

        config_path = Path(project_root) / CONFIG_FILENAME
        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("top-level value must be an object")
                self._config = data
                self._config_path = config_path
                logger.debug("Loaded config from: %s", config_path)
            except (json.JSONDecodeError, ValueError) as e:
                logger.warning("Invalid JSON in %s: %s", config_path, e)
            except OSError as e:
                logger.warning("Error loading %s: %s", config_path, e)

        self._loaded = True
        return self._config_path is not None

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting: environment first, then the config file, then default."""
        env_var = self.CONFIG_KEY_TO_ENV.get(key)
        if env_var:
            env_value = os.getenv(env_var)
            if env_value:
                return env_value
        if key in self._config:
            return self._config[key]
        return self.DEFAULTS.get(key, default)

    def get_settings(self) -> TransformSettings:
        """
        Resolve every known setting.

        Returns:
            Immutable TransformSettings
        """
        self.load()
        store_dir = self.get("store_dir")
        return TransformSettings(
            store_dir=str(store_dir) if store_dir else None,
            config_folder=str(self.get("config_folder")),
            program_filename=str(self.get("program_filename")),
            log_level=str(self.get("log_level")).upper(),
        )

    @property
    def config_path(self) -> Optional[Path]:
        """Path to the loaded config file, or None if not loaded."""
        return self._config_path

    @property
    def config(self) -> Dict[str, Any]:
        """The loaded configuration dictionary."""
        return self._config.copy()


def get_settings(project_root: Optional[Path] = None) -> TransformSettings:
    """
    Load rdf_transform.json and resolve the settings.

    Args:
        project_root: Project root directory. If None, auto-detects.

    Returns:
        Immutable TransformSettings
    """
    loader = ConfigLoader()
    loader.load(project_root)
    return loader.get_settings()
