"""Logging setup for the Latte engine: a rotating log file plus the console."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["setup_logging", "level_for", "get_log_path", "LOG_FORMAT"]

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_LOG_FILENAME = "latte.log"
_DEFAULT_LOG_DIR = Path.home() / ".latte" / "logs"
# markdown_it logs every rule at DEBUG.
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "markdown_it")
_LOG_PATH: Path | None = None


def level_for(debug: bool) -> int:
    return logging.DEBUG if debug else logging.INFO


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Install the engine's root handlers and return the log file path.

    Calling again is a no-op unless ``force`` is set.
    """

    global _LOG_PATH
    if _LOG_PATH is not None and not force:
        return _LOG_PATH

    log_path = _resolve_log_dir(log_dir) / _LOG_FILENAME
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=_DATE_FORMAT)

    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    quiet_level = max(level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(quiet_level)

    _LOG_PATH = log_path
    logging.getLogger(__name__).debug("Logging to %s at %s", log_path, logging.getLevelName(level))
    return log_path


def get_log_path() -> Path | None:
    """Path of the active log file, or ``None`` before :func:`setup_logging` ran."""

    return _LOG_PATH


def _resolve_log_dir(log_dir: Path | str | None) -> Path:
    if log_dir is None:
        log_dir = os.environ.get("LATTE_LOG_DIR") or _DEFAULT_LOG_DIR
    return Path(log_dir).expanduser()
