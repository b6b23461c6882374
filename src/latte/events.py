"""Event bus and the events published by the session engine.

A file-tree view or status line subscribes here instead of polling the
controller. Publishing is synchronous and happens on the event-loop thread.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional
from weakref import WeakMethod

LOGGER = logging.getLogger(__name__)

Handler = Callable[[Any], None]


@dataclass(slots=True)
class Event:
    """Base class for everything published on the :class:`EventBus`."""


# =============================================================================
# Document events
# =============================================================================


@dataclass(slots=True)
class DocumentCreated(Event):
    """A document was added to the index.

    Attributes:
        document_id: The id of the new document.
        name: The display name it was created with.
        folder: Its folder label, empty when ungrouped.
    """

    document_id: str
    name: str
    folder: str = ""


@dataclass(slots=True)
class DocumentOpened(Event):
    """A document became the current document.

    Attributes:
        document_id: The id of the newly current document.
        previous_id: The id of the document that was current before, if any.
    """

    document_id: str
    previous_id: str | None = None


@dataclass(slots=True)
class DocumentSaved(Event):
    """Auto-save or a flush wrote content into the index.

    Attributes:
        document_id: The id of the saved document.
        length: Length of the saved content in characters.
        reason: ``"autosave"`` or ``"flush"``.
    """

    document_id: str
    length: int
    reason: str = "autosave"


# =============================================================================
# Render events
# =============================================================================


@dataclass(slots=True)
class RenderCompleted(Event):
    """A successful render became the live result.

    ``document_id`` is ``None`` for renders made while no document is current.
    """

    document_id: str | None
    sequence: int


@dataclass(slots=True)
class RenderFailed(Event):
    """A failed render became the live result; ``message`` is the compiler's error text."""

    document_id: str | None
    sequence: int
    message: str


# =============================================================================
# Persistence events
# =============================================================================


@dataclass(slots=True)
class StoreWriteFailed(Event):
    """The persistence medium rejected a write. Editing continues in memory."""

    operation: str
    key: str | None
    message: str


# Published on every keystroke burst; not worth a debug line each.
_QUIET_EVENTS: frozenset[type[Event]] = frozenset({DocumentSaved, RenderCompleted})


class _Subscription:
    """One registered handler.

    Bound methods are held weakly so a subscriber that goes away stops
    receiving events without unsubscribing. Other callables are held strongly.
    """

    __slots__ = ("label", "_weak", "_strong")

    def __init__(self, handler: Handler) -> None:
        self.label = _describe(handler)
        self._weak: Optional[WeakMethod] = WeakMethod(handler) if inspect.ismethod(handler) else None
        self._strong: Optional[Handler] = None if self._weak is not None else handler

    def target(self) -> Optional[Handler]:
        if self._weak is not None:
            return self._weak()
        return self._strong

    def refers_to(self, handler: Handler) -> bool:
        current = self.target()
        return current is not None and current == handler


class EventBus:
    """Synchronous publish/subscribe keyed on the exact event type.

    Example::

        bus = EventBus()
        stop = bus.subscribe(DocumentOpened, lambda event: print(event.document_id))
        bus.publish(DocumentOpened(document_id="k3x9a"))
        stop()

    A handler that raises is logged and the remaining handlers still run.
    Not thread-safe; use it from the event-loop thread.
    """

    __slots__ = ("_subscriptions",)

    def __init__(self) -> None:
        self._subscriptions: Dict[type[Event], List[_Subscription]] = {}

    def subscribe(self, event_type: type[Event], handler: Handler) -> Callable[[], bool]:
        """Register ``handler`` and return a callable that unregisters it.

        Registering the same handler twice delivers each event to it twice.
        """

        subscription = _Subscription(handler)
        self._subscriptions.setdefault(event_type, []).append(subscription)
        LOGGER.debug("%s subscribed to %s", subscription.label, event_type.__name__)
        return partial(self.unsubscribe, event_type, handler)

    def unsubscribe(self, event_type: type[Event], handler: Handler) -> bool:
        """Remove one registration of ``handler``. Returns ``False`` if there was none."""

        subscriptions = self._subscriptions.get(event_type, [])
        for position, subscription in enumerate(subscriptions):
            if subscription.refers_to(handler):
                del subscriptions[position]
                LOGGER.debug("%s unsubscribed from %s", subscription.label, event_type.__name__)
                return True
        return False

    def publish(self, event: Event) -> int:
        """Deliver ``event`` in subscription order; returns how many handlers ran cleanly."""

        event_type = type(event)
        subscriptions = self._subscriptions.get(event_type)
        if not subscriptions:
            return 0
        if event_type not in _QUIET_EVENTS:
            LOGGER.debug("Publishing %s to %d handler(s)", event_type.__name__, len(subscriptions))

        delivered = 0
        for subscription in list(subscriptions):
            handler = subscription.target()
            if handler is None:
                subscriptions.remove(subscription)
                continue
            try:
                handler(event)
            except Exception:
                LOGGER.exception("%s failed while handling %s", subscription.label, event_type.__name__)
            else:
                delivered += 1
        return delivered

    def clear(self) -> None:
        self._subscriptions.clear()

    def handler_count(self, event_type: type[Event] | None = None) -> int:
        if event_type is None:
            return sum(len(subscriptions) for subscriptions in self._subscriptions.values())
        return len(self._subscriptions.get(event_type, ()))


def _describe(handler: Any) -> str:
    name = getattr(handler, "__qualname__", None) or getattr(handler, "__name__", None)
    return name or type(handler).__name__


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "DocumentCreated",
    "DocumentOpened",
    "DocumentSaved",
    "RenderCompleted",
    "RenderFailed",
    "StoreWriteFailed",
]
