"""Session controller: owns the current document and coordinates save and render.

The controller keeps two owned timers. The render timer lives inside the
:class:`~latte.render.pipeline.RenderPipeline`; the auto-save timer lives
here. They are independent: a render can land before the matching save or
after it.

Switching documents flushes the outgoing document's pending save first,
then binds the pipeline to the incoming document so that late renders for
the old one are discarded.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Mapping, Protocol, runtime_checkable

from ..editor.document_model import UNTITLED_NAME, Document
from ..editor.templates import DEFAULT_TEMPLATE, TEMPLATES, WELCOME_TEMPLATE, resolve_template
from ..errors import NotFoundError
from ..events import (
    DocumentCreated,
    DocumentOpened,
    DocumentSaved,
    EventBus,
    RenderCompleted,
    RenderFailed,
)
from ..render.pipeline import RenderFailure, RenderPipeline, RenderResult, RenderSuccess
from ..services.settings import EMPTY_START_CHOICES
from ..utils.timers import DebounceTimer
from .document_index import DocumentIndex, GroupedDocuments

LOGGER = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_DEBOUNCE = 1.0


class SessionMode(Enum):
    """Whether a document is currently being edited."""

    EMPTY = "empty"
    EDITING = "editing"


@runtime_checkable
class EditorSurface(Protocol):
    """The editing widget, as far as the controller is concerned."""

    def set_text(self, text: str) -> None:  # pragma: no cover - protocol stub
        ...


class SessionController:
    """Coordinates opening, creating, auto-saving and rendering documents.

    Args:
        index: The document index holding the session state.
        pipeline: The render pipeline for the preview.
        editor: Optional editing surface that receives full-text replacements.
        event_bus: Optional bus for document and render events.
        autosave_seconds: Quiet period before an edit is written to the index.
        templates: Starter-content registry for :meth:`create_document`.
        default_template: Template used for unknown template keys.
        empty_start: What to show when no document was open last session:
            ``"welcome"`` renders the welcome text without a document,
            ``"blank"`` shows nothing, ``"create"`` creates a document.
        loop: Event loop for the auto-save timer; defaults to the running loop.
        autostart: Run :meth:`start` from the constructor.
    """

    def __init__(
        self,
        index: DocumentIndex,
        pipeline: RenderPipeline,
        *,
        editor: EditorSurface | None = None,
        event_bus: EventBus | None = None,
        autosave_seconds: float = DEFAULT_AUTOSAVE_DEBOUNCE,
        templates: Mapping[str, str] | None = None,
        default_template: str = DEFAULT_TEMPLATE,
        empty_start: str = "welcome",
        loop: asyncio.AbstractEventLoop | None = None,
        autostart: bool = True,
    ) -> None:
        if empty_start not in EMPTY_START_CHOICES:
            raise ValueError(f"Unknown empty_start policy: {empty_start!r}")
        self._index = index
        self._pipeline = pipeline
        self._editor = editor
        self._bus = event_bus
        self._templates: Mapping[str, str] = dict(templates) if templates is not None else dict(TEMPLATES)
        self._default_template = default_template
        self._empty_start = empty_start
        self._loop = loop or asyncio.get_running_loop()
        self._autosave = DebounceTimer(
            autosave_seconds, self._autosave_fired, loop=self._loop, name="autosave"
        )
        self._snapshot: str | None = None
        self._loading = False
        self._started = False
        self._closed = False

        self._pipeline.add_result_listener(self._on_render_result)
        if autostart:
            self.start()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def index(self) -> DocumentIndex:
        return self._index

    @property
    def pipeline(self) -> RenderPipeline:
        return self._pipeline

    @property
    def mode(self) -> SessionMode:
        if self._index.state.current_document() is None:
            return SessionMode.EMPTY
        return SessionMode.EDITING

    @property
    def current_document_id(self) -> str | None:
        """The current document id; ``None`` when nothing valid is open."""

        document = self._index.state.current_document()
        return document.id if document is not None else None

    @property
    def current_document(self) -> Document | None:
        return self._index.state.current_document()

    @property
    def snapshot(self) -> str | None:
        """Last editor text received through :meth:`on_editor_changed`."""

        return self._snapshot

    @property
    def render_result(self) -> RenderResult | None:
        return self._pipeline.latest

    @property
    def last_success(self) -> RenderSuccess | None:
        return self._pipeline.last_success

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.pending

    def grouped(self) -> GroupedDocuments:
        return self._index.grouped()

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Restore the last open document or apply the empty-start policy."""

        if self._started:
            return
        self._started = True

        state = self._index.state
        document = state.current_document()
        if document is not None:
            LOGGER.debug("SessionController.start: restoring %s", document.id)
            self._enter(document)
            return

        if state.current_document_id is not None:
            LOGGER.debug(
                "SessionController.start: dropping dangling current id %s",
                state.current_document_id,
            )
            self._index.set_current(None)

        self._pipeline.bind(None)
        if self._empty_start == "welcome":
            welcome = resolve_template(WELCOME_TEMPLATE, self._templates, default=self._default_template)
            self._load_editor(welcome)
            self._snapshot = welcome
            self._pipeline.render_now(welcome, document_id=None)
        elif self._empty_start == "create":
            self.create_document(UNTITLED_NAME, "", WELCOME_TEMPLATE)

    # ------------------------------------------------------------------
    # Intents from the file tree
    # ------------------------------------------------------------------

    def open_document(self, document_id: str) -> bool:
        """Make ``document_id`` current; returns ``False`` (and changes nothing) if unknown."""

        if self._closed:
            return False
        target = self._index.find(document_id)
        if target is None:
            LOGGER.debug("%s", NotFoundError.for_id(document_id, "open_document"))
            return False

        previous_id = self.current_document_id
        self.flush()
        self._enter(target)
        if self._bus is not None:
            self._bus.publish(DocumentOpened(document_id=target.id, previous_id=previous_id))
        return True

    def create_document(
        self, name: str | None, folder: str | None, template_key: str | None
    ) -> Document | None:
        """Create a document from a starter template and open it; ``None`` once closed."""

        if self._closed:
            return None
        content = resolve_template(template_key, self._templates, default=self._default_template)
        document = self._index.create(name, folder, content)
        if self._bus is not None:
            self._bus.publish(
                DocumentCreated(document_id=document.id, name=document.name, folder=document.folder)
            )
        self.open_document(document.id)
        return document

    def delete_document(self, document_id: str) -> bool:
        """Remove a document; deleting the current one returns the session to empty.

        The deleted document's preview is dropped with it.
        """

        if self._closed:
            return False
        if self._index.find(document_id) is None:
            LOGGER.debug("%s", NotFoundError.for_id(document_id, "delete_document"))
            return False
        if document_id == self.current_document_id:
            self._autosave.cancel()
            self._snapshot = None
            self._pipeline.cancel()
            self._pipeline.bind(None)
            self._pipeline.clear_result()
        self._index.delete(document_id)
        return True

    # ------------------------------------------------------------------
    # Editing surface
    # ------------------------------------------------------------------

    def on_editor_changed(self, source: str) -> None:
        """Handle a change event carrying the editor's full text."""

        if self._closed:
            return
        self._snapshot = source
        if self._loading:
            return
        document_id = self.current_document_id
        self._pipeline.schedule_render(source, document_id=document_id)
        if document_id is not None:
            self._autosave.trigger(document_id, source)

    def flush(self) -> bool:
        """Write the pending auto-save now. Returns ``True`` if something was saved."""

        return self._autosave.flush(reason="flush")

    async def aclose(self) -> None:
        """Flush pending edits and stop the render pipeline."""

        if self._closed:
            return
        self.flush()
        self._closed = True
        await self._pipeline.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _enter(self, document: Document) -> None:
        self._autosave.cancel()
        self._index.set_current(document.id)
        self._pipeline.bind(document.id)
        self._load_editor(document.content)
        self._snapshot = document.content
        self._pipeline.render_now(document.content, document_id=document.id)
        LOGGER.debug("SessionController: editing %s (%r)", document.id, document.name)

    def _load_editor(self, text: str) -> None:
        if self._editor is None:
            return
        self._loading = True
        try:
            self._editor.set_text(text)
        finally:
            self._loading = False

    def _autosave_fired(self, document_id: str, source: str, reason: str = "autosave") -> None:
        if document_id != self.current_document_id:
            LOGGER.debug("Auto-save for %s skipped: no longer current", document_id)
            return
        if not self._index.update(document_id, source):
            return
        if self._bus is not None:
            self._bus.publish(DocumentSaved(document_id=document_id, length=len(source), reason=reason))

    def _on_render_result(self, result: RenderResult, document_id: str | None) -> None:
        if self._bus is None:
            return
        if isinstance(result, RenderFailure):
            self._bus.publish(
                RenderFailed(document_id=document_id, sequence=result.sequence, message=result.message)
            )
        else:
            self._bus.publish(RenderCompleted(document_id=document_id, sequence=result.sequence))


__all__ = [
    "SessionController",
    "SessionMode",
    "EditorSurface",
    "DEFAULT_AUTOSAVE_DEBOUNCE",
]
