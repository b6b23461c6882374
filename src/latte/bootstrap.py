"""Wiring helpers that assemble a ready-to-use editing session."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from .domain.document_index import DocumentIndex
from .domain.document_store import DocumentStore
from .domain.session_controller import EditorSurface, SessionController
from .events import EventBus
from .render.compiler import Compiler, MarkdownCompiler
from .render.pipeline import RenderPipeline
from .services.settings import Settings, SettingsStore
from .services.storage import FileMedium, KeyValueMedium
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)


def configure_logging(debug: bool = False, *, log_dir: Path | str | None = None, force: bool = False) -> Path:
    """Configure logging for the engine and return the log file path."""

    level = logging_utils.level_for(debug)
    path = logging_utils.setup_logging(level, log_dir=log_dir, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))
    return path


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Read settings from disk; an unreadable file yields the defaults."""

    active_store = store or SettingsStore(path)
    try:
        settings = active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = Settings()
    return settings


def create_session(
    settings: Settings | None = None,
    *,
    compiler: Compiler | None = None,
    editor: EditorSurface | None = None,
    event_bus: EventBus | None = None,
    medium: KeyValueMedium | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> SessionController:
    """Build store, index, pipeline and controller, and start the session.

    Must be called with a running event loop unless ``loop`` is given.
    """

    active = settings or Settings()
    bus = event_bus or EventBus()
    target_medium = medium or FileMedium(active.storage_dir, quota_bytes=active.storage_quota_bytes)
    store = DocumentStore(target_medium, event_bus=bus)
    index = DocumentIndex.load(store)
    pipeline = RenderPipeline(
        compiler or MarkdownCompiler(),
        debounce_seconds=active.render_debounce_seconds,
        loop=loop,
    )
    controller = SessionController(
        index,
        pipeline,
        editor=editor,
        event_bus=bus,
        autosave_seconds=active.autosave_debounce_seconds,
        default_template=active.default_template,
        empty_start=active.empty_start,
        loop=loop,
    )
    _LOGGER.debug(
        "Session created: %d documents, mode=%s, current=%s",
        len(index),
        controller.mode.value,
        controller.current_document_id,
    )
    return controller


__all__ = ["configure_logging", "load_settings", "create_session"]
