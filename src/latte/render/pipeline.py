"""Debounced, asynchronous render pipeline with stale-result guarding."""

from __future__ import annotations

import asyncio
import html
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Callable, Union

from ..utils.timers import DebounceTimer
from .compiler import CompileOptions, Compiler, DocumentTree

__all__ = [
    "PresentationResource",
    "PRESENTATION_RESOURCES",
    "TYPOGRAPHIC_RESET",
    "RenderArtifact",
    "RenderSuccess",
    "RenderFailure",
    "RenderResult",
    "RenderPipeline",
    "assemble_artifact",
    "DEFAULT_RENDER_DEBOUNCE",
]

LOGGER = logging.getLogger(__name__)
DEFAULT_RENDER_DEBOUNCE = 0.45


@dataclass(frozen=True, slots=True)
class PresentationResource:
    """A stylesheet the rendered document links to."""

    name: str
    href: str

    def to_html(self) -> str:
        return f'<link rel="stylesheet" href="{html.escape(self.href, quote=True)}">'


# Math stylesheet first: the document stylesheet overrides parts of it.
PRESENTATION_RESOURCES: tuple[PresentationResource, ...] = (
    PresentationResource("katex", "https://cdn.jsdelivr.net/npm/katex@0.16.9/dist/katex.min.css"),
    PresentationResource("latex-document", "https://cdn.jsdelivr.net/npm/latex.js@0.12.6/dist/latex.css"),
)

TYPOGRAPHIC_RESET = """
body { font-family: 'Georgia', serif; padding: 3rem 4rem;
       max-width: 780px; margin: 0 auto; line-height: 1.65;
       color: #1a1208; background: #fff; }
@media (max-width: 600px) { body { padding: 1.5rem 1rem; } }
"""


@dataclass(frozen=True, slots=True)
class RenderArtifact:
    """A compiled document together with everything needed to display it."""

    tree: DocumentTree
    resources: tuple[PresentationResource, ...] = PRESENTATION_RESOURCES
    reset_css: str = TYPOGRAPHIC_RESET

    @property
    def html(self) -> str:
        """Serialize to a self-contained HTML document."""

        title = html.escape(self.tree.title or "Preview")
        head = [
            '<meta charset="utf-8">',
            f"<title>{title}</title>",
            *(resource.to_html() for resource in self.resources),
            f"<style>{self.reset_css}</style>",
        ]
        return (
            "<!DOCTYPE html>"
            "<html><head>" + "".join(head) + "</head>"
            "<body>" + self.tree.body_html + "</body></html>"
        )


@dataclass(frozen=True, slots=True)
class RenderSuccess:
    artifact: RenderArtifact
    sequence: int = 0

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class RenderFailure:
    message: str
    sequence: int = 0

    @property
    def ok(self) -> bool:
        return False


RenderResult = Union[RenderSuccess, RenderFailure]
ResultCallback = Callable[[RenderResult, Union[str, None]], None]


def assemble_artifact(tree: DocumentTree) -> RenderArtifact:
    return RenderArtifact(tree=tree, resources=PRESENTATION_RESOURCES, reset_css=TYPOGRAPHIC_RESET)


def _is_async(compiler: Compiler) -> bool:
    return inspect.iscoroutinefunction(compiler) or inspect.iscoroutinefunction(
        getattr(compiler, "__call__", None)
    )


def _failure_message(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or type(exc).__name__


class RenderPipeline:
    """Turns source text into a :class:`RenderResult`, at most once per quiet period.

    :meth:`schedule_render` restarts a debounce timer; only the source from
    the last call in a burst is compiled. Compiles run as tasks on the event
    loop, and synchronous compilers run in a worker thread so a slow compile
    stalls only the preview. A finished compile is applied only if no newer
    request has already landed and it belongs to the document the pipeline
    is bound to.
    """

    def __init__(
        self,
        compiler: Compiler,
        *,
        debounce_seconds: float = DEFAULT_RENDER_DEBOUNCE,
        options: CompileOptions | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        on_result: ResultCallback | None = None,
    ) -> None:
        if compiler is None:
            raise ValueError("compiler is required")
        self._compiler = compiler
        self._options = options or CompileOptions()
        self._loop = loop or asyncio.get_running_loop()
        self._listeners: list[ResultCallback] = [on_result] if on_result is not None else []
        self._timer = DebounceTimer(debounce_seconds, self._start, loop=self._loop, name="render")
        self._tasks: set[asyncio.Task[None]] = set()
        self._sequence = 0
        self._landed_sequence = 0
        self._active_document_id: str | None = None
        self._latest: RenderResult | None = None
        self._last_success: RenderSuccess | None = None
        self._compile_count = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def latest(self) -> RenderResult | None:
        """The live render result, or ``None`` before the first render lands."""

        return self._latest

    @property
    def last_success(self) -> RenderSuccess | None:
        return self._last_success

    @property
    def active_document_id(self) -> str | None:
        return self._active_document_id

    @property
    def compile_count(self) -> int:
        return self._compile_count

    @property
    def pending(self) -> bool:
        return self._timer.pending

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def add_result_listener(self, listener: ResultCallback) -> None:
        """Call ``listener(result, document_id)`` each time a result is applied."""

        self._listeners.append(listener)

    def bind(self, document_id: str | None) -> None:
        """Attach the pipeline to ``document_id``; results for other documents are dropped."""

        if document_id != self._active_document_id:
            LOGGER.debug("Render pipeline bound to %s (was %s)", document_id, self._active_document_id)
        self._active_document_id = document_id

    def schedule_render(self, source: str, *, document_id: str | None = None) -> None:
        if self._closed:
            return
        self._timer.trigger(source, document_id)

    def render_now(self, source: str, *, document_id: str | None = None) -> None:
        """Skip the debounce: drop any pending request and compile ``source`` now."""

        if self._closed:
            return
        self._timer.cancel()
        self._start(source, document_id)

    def cancel(self) -> bool:
        return self._timer.cancel()

    def clear_result(self) -> None:
        """Forget the live result and the last success."""

        self._latest = None
        self._last_success = None

    async def wait_idle(self) -> None:
        """Wait until every compile that has started has finished."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._timer.cancel()
        await self.wait_idle()

    # ------------------------------------------------------------------
    # Compile + apply
    # ------------------------------------------------------------------
    def _start(self, source: str, document_id: str | None) -> None:
        self._sequence += 1
        sequence = self._sequence
        task = self._loop.create_task(self._compile(source, document_id, sequence))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _compile(self, source: str, document_id: str | None, sequence: int) -> None:
        started = time.perf_counter()
        self._compile_count += 1
        result: RenderResult
        try:
            if _is_async(self._compiler):
                tree = await self._compiler(source, self._options)
            else:
                tree = await asyncio.to_thread(self._compiler, source, self._options)
                if inspect.isawaitable(tree):
                    tree = await tree
            result = RenderSuccess(artifact=assemble_artifact(tree), sequence=sequence)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            result = RenderFailure(message=_failure_message(exc), sequence=sequence)
            LOGGER.debug("Render #%d failed for %s: %s", sequence, document_id, result.message)
        latency_ms = (time.perf_counter() - started) * 1000.0
        self._apply(result, document_id, sequence, latency_ms)

    def _apply(self, result: RenderResult, document_id: str | None, sequence: int, latency_ms: float) -> None:
        if sequence < self._landed_sequence:
            LOGGER.debug(
                "Discarding render #%d for %s: #%d already landed",
                sequence,
                document_id,
                self._landed_sequence,
            )
            return
        if document_id != self._active_document_id:
            LOGGER.debug(
                "Discarding render #%d for %s: pipeline now bound to %s",
                sequence,
                document_id,
                self._active_document_id,
            )
            return
        self._landed_sequence = sequence
        self._latest = result
        if isinstance(result, RenderSuccess):
            self._last_success = result
        LOGGER.debug(
            "Render #%d applied for %s (ok=%s, %.1f ms)",
            sequence,
            document_id,
            result.ok,
            latency_ms,
        )
        for listener in list(self._listeners):
            try:
                listener(result, document_id)
            except Exception:
                LOGGER.exception("Render result listener failed for %s", document_id)
