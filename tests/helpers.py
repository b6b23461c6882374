"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test files::

    from tests.helpers import FakeEditor, RecordingCompiler
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from latte.errors import CompileError, QuotaExceededError
from latte.events import Event
from latte.render.compiler import CompileOptions, DocumentTree
from latte.services.storage import MemoryMedium


class FakeEditor:
    """Editing surface that records every full-text replacement.

    Pass ``on_set_text`` to mimic widgets that fire their change signal
    when the whole text is replaced.
    """

    def __init__(self, on_set_text: Callable[[str], None] | None = None) -> None:
        self.text = ""
        self.loads: list[str] = []
        self.on_set_text = on_set_text

    def set_text(self, text: str) -> None:
        self.text = text
        self.loads.append(text)
        if self.on_set_text is not None:
            self.on_set_text(text)


class RecordingCompiler:
    """Synchronous compiler that remembers the sources it was given.

    Sources starting with ``FAIL`` raise a :class:`CompileError` whose
    message is the rest of the source.
    """

    def __init__(self) -> None:
        self.sources: list[str] = []

    def __call__(self, source: str, options: CompileOptions) -> DocumentTree:
        self.sources.append(source)
        if source.startswith("FAIL"):
            raise CompileError(message=source[len("FAIL"):].strip() or "failed")
        return DocumentTree(body_html=f"<p>{source}</p>")


class SlowCompiler:
    """Async compiler whose latency is looked up per source."""

    def __init__(self, delays: dict[str, float] | None = None, default: float = 0.0) -> None:
        self.delays = dict(delays or {})
        self.default = default
        self.sources: list[str] = []

    async def __call__(self, source: str, options: CompileOptions) -> DocumentTree:
        self.sources.append(source)
        await asyncio.sleep(self.delays.get(source, self.default))
        return DocumentTree(body_html=f"<p>{source}</p>")


class BlockingCompiler:
    """Synchronous compiler that blocks on one source until ``release`` is set."""

    def __init__(self, hold: str, timeout: float = 2.0) -> None:
        self.hold = hold
        self.timeout = timeout
        self.release = threading.Event()
        self.sources: list[str] = []

    def __call__(self, source: str, options: CompileOptions) -> DocumentTree:
        self.sources.append(source)
        if source == self.hold:
            self.release.wait(self.timeout)
        return DocumentTree(body_html=f"<p>{source}</p>")


class RejectingMedium(MemoryMedium):
    """Medium that reads normally but refuses every write."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial=initial)
        self.attempts = 0

    def set_item(self, key: str, value: str) -> None:
        self.attempts += 1
        raise QuotaExceededError(message="medium is full", quota_bytes=0, requested_bytes=len(value))


class BrokenMedium(MemoryMedium):
    """Medium whose reads fail outright."""

    def get_item(self, key: str) -> str | None:
        raise OSError("storage unavailable")


class UnremovableMedium(MemoryMedium):
    """Medium that refuses to delete records."""

    def remove_item(self, key: str) -> None:
        raise OSError("read-only storage")


@dataclass
class EventRecorder:
    """Collects published events in order."""

    events: list[Event] = field(default_factory=list)

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> list[Any]:
        return [event for event in self.events if isinstance(event, event_type)]
