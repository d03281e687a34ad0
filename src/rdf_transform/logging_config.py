"""
Logging Configuration for rdf-transform.

Module loggers are created with ``logging.getLogger(__name__)`` and all sit
below the ``rdf_transform`` package logger. configure_logging() attaches the
handlers to that package logger once:

- an auto-flushing stderr handler
- a ``transform.log`` file handler when RDF_TRANSFORM_LOG_DIR is set
  (set RDF_TRANSFORM_DEBUG_LOG="" to disable it)
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "rdf_transform"
LOG_FILENAME = "transform.log"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _get_log_directory() -> Optional[Path]:
    """Log directory from RDF_TRANSFORM_LOG_DIR, or None when unset."""
    log_dir = os.getenv("RDF_TRANSFORM_LOG_DIR")
    if not log_dir:
        return None
    return Path(log_dir)


def _debug_log_enabled() -> bool:
    # Set RDF_TRANSFORM_DEBUG_LOG="" to disable
    return os.getenv("RDF_TRANSFORM_DEBUG_LOG") != ""


def _create_file_handler(log_filename: str) -> Optional[logging.FileHandler]:
    """
    Create a file handler for the specified log file.

    Args:
        log_filename: Name of the log file (e.g., 'transform.log')

    Returns:
        Configured FileHandler, or None if file logging is disabled or the
        directory cannot be created
    """
    log_dir = _get_log_directory()
    if log_dir is None or not _debug_log_enabled():
        return None

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_dir / log_filename, mode='a', encoding='utf-8')
    except OSError as e:
        logging.getLogger(PACKAGE_LOGGER).warning("File logging disabled: %s", e)
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


class FlushingStreamHandler(logging.StreamHandler):
    """StreamHandler that flushes after every emit.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a handler.
    ::: This is stateless.
    """
    def emit(self, record):
        super().emit(record)
        self.flush()


def _create_stderr_handler() -> logging.StreamHandler:
    """Create a stderr handler for console output with auto-flush."""
    handler = FlushingStreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Configure the package logger.

    Handlers are attached only once; later calls just update the level.

    Args:
        level: Logging level name or number

    Returns:
        The ``rdf_transform`` logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    # Only configure once
    if not logger.handlers:
        logger.propagate = False

        file_handler = _create_file_handler(LOG_FILENAME)
        if file_handler:
            logger.addHandler(file_handler)

        logger.addHandler(_create_stderr_handler())

    return logger


def reset_logging() -> None:
    """Remove and close every handler configure_logging() attached."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True


def _stderr_handlers():
    logger = logging.getLogger(PACKAGE_LOGGER)
    return [
        handler for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler)
        and not isinstance(handler, logging.FileHandler)
    ]


def suppress_stderr_logging():
    """
    Suppress stderr logging for the package logger.

    File logging continues to work normally.
    """
    for handler in _stderr_handlers():
        handler.setLevel(logging.CRITICAL + 1)  # Effectively disable


def restore_stderr_logging():
    """Restore stderr logging after suppress_stderr_logging()."""
    for handler in _stderr_handlers():
        handler.setLevel(logging.DEBUG)
