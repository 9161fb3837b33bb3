"""Logging setup with Rich console output and a rotating log file.

Every logger in the application lives under the ``photo_export``
namespace, so a single call to :func:`configure_logging` controls the
console and file handlers for all modules, including the export worker
thread.

Example:
    >>> from photo_export.core.logger import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", file_output=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("Exporting %d albums", 3)
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROOT_LOGGER_NAME = "photo_export"
LOG_FILE_NAME = "photo_export.log"

DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "photo_export" / "logs"
DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = "[%(asctime)s] %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

CONSOLE_THEME = Theme(
    {
        "logging.level.debug": "dim cyan",
        "logging.level.info": "green",
        "logging.level.warning": "yellow",
        "logging.level.error": "bold red",
        "logging.level.critical": "bold white on red",
    }
)

_log_dir: Path = DEFAULT_LOG_DIR
_log_level: int = DEFAULT_LOG_LEVEL
_initialized: bool = False
_console: Console | None = None


def _resolve_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), DEFAULT_LOG_LEVEL)
    return level


def _get_console() -> Console:
    """Return the shared stderr console used by the Rich handler."""
    global _console
    if _console is None:
        _console = Console(theme=CONSOLE_THEME, stderr=True)
    return _console


def _create_file_handler() -> RotatingFileHandler:
    """Create the rotating file handler, creating the log directory first.

    Returns:
        RotatingFileHandler writing to ``<log_dir>/photo_export.log``.
    """
    _log_dir.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(_log_dir / LOG_FILE_NAME),
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT))
    handler.setLevel(_log_level)
    return handler


def _create_console_handler() -> RichHandler:
    handler = RichHandler(
        console=_get_console(),
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setLevel(_log_level)
    return handler


def configure_logging(
    level: int | str = DEFAULT_LOG_LEVEL,
    log_dir: Path | None = None,
    console_output: bool = True,
    file_output: bool = True,
) -> None:
    """Configure the ``photo_export`` logger hierarchy.

    Safe to call more than once; existing handlers are closed and replaced.

    Args:
        level: Log level name ("DEBUG", "INFO", ...) or numeric level.
        log_dir: Directory for the log file. Defaults to
            ``~/.local/share/photo_export/logs``.
        console_output: Attach a Rich console handler.
        file_output: Attach a rotating file handler.
    """
    global _log_dir, _log_level, _initialized

    _log_level = _resolve_level(level)
    if log_dir is not None:
        _log_dir = log_dir

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(_log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    if console_output:
        root_logger.addHandler(_create_console_handler())

    if file_output:
        root_logger.addHandler(_create_file_handler())

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``photo_export`` namespace.

    Logging is configured with defaults on first use if
    :func:`configure_logging` has not been called yet.

    Args:
        name: Logger name, typically ``__name__``.

    Returns:
        The named logger.
    """
    if not _initialized:
        configure_logging()

    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_log_level(level: int | str) -> None:
    """Change the level of the root logger and all of its handlers."""
    global _log_level

    _log_level = _resolve_level(level)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(_log_level)
    for handler in root_logger.handlers:
        handler.setLevel(_log_level)


def get_log_file_path() -> Path:
    return _log_dir / LOG_FILE_NAME


def get_log_dir() -> Path:
    return _log_dir


class LogLevel:
    """Log level constants for convenient access."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


__all__ = [
    "configure_logging",
    "get_logger",
    "get_log_dir",
    "get_log_file_path",
    "set_log_level",
    "LogLevel",
    "DEFAULT_LOG_DIR",
    "DEFAULT_LOG_LEVEL",
]
