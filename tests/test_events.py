"""Tests for the event bus and the engine's event types."""

from __future__ import annotations

import gc
import logging
from dataclasses import dataclass

import pytest

from latte.events import (
    DocumentCreated,
    DocumentOpened,
    DocumentSaved,
    Event,
    EventBus,
    RenderFailed,
    StoreWriteFailed,
)


@dataclass(slots=True)
class PingEvent(Event):
    message: str
    value: int = 0


class Listener:
    def __init__(self) -> None:
        self.received: list[Event] = []

    def on_event(self, event: Event) -> None:
        self.received.append(event)


class TestSubscription:
    def test_subscribe_and_count(self) -> None:
        bus = EventBus()

        bus.subscribe(PingEvent, lambda e: None)
        bus.subscribe(DocumentOpened, lambda e: None)

        assert bus.handler_count(PingEvent) == 1
        assert bus.handler_count() == 2

    def test_same_handler_twice_is_called_twice(self) -> None:
        bus = EventBus()
        received: list[Event] = []
        handler = received.append

        bus.subscribe(PingEvent, handler)
        bus.subscribe(PingEvent, handler)
        bus.publish(PingEvent(message="x"))

        assert len(received) == 2

    def test_unsubscribe_removes_one_registration(self) -> None:
        bus = EventBus()

        def handler(event: PingEvent) -> None:
            pass

        bus.subscribe(PingEvent, handler)
        bus.subscribe(PingEvent, handler)
        bus.unsubscribe(PingEvent, handler)

        assert bus.handler_count(PingEvent) == 1

    def test_unsubscribe_unknown_is_safe(self) -> None:
        bus = EventBus()

        bus.unsubscribe(PingEvent, lambda e: None)
        bus.unsubscribe(DocumentOpened, lambda e: None)

        assert bus.handler_count() == 0

    def test_subscribe_returns_unsubscriber(self) -> None:
        bus = EventBus()
        received: list[Event] = []

        stop = bus.subscribe(PingEvent, received.append)
        assert stop() is True
        assert stop() is False
        bus.publish(PingEvent(message="ignored"))

        assert received == []

    def test_clear(self) -> None:
        bus = EventBus()
        bus.subscribe(PingEvent, lambda e: None)

        bus.clear()

        assert bus.handler_count() == 0


class TestPublish:
    def test_handlers_run_in_subscription_order(self) -> None:
        bus = EventBus()
        order: list[int] = []
        bus.subscribe(PingEvent, lambda e: order.append(1))
        bus.subscribe(PingEvent, lambda e: order.append(2))

        delivered = bus.publish(PingEvent(message="go"))

        assert order == [1, 2]
        assert delivered == 2

    def test_only_exact_type_receives(self) -> None:
        bus = EventBus()
        opened: list[Event] = []
        bus.subscribe(DocumentOpened, opened.append)

        bus.publish(DocumentCreated(document_id="a", name="A"))

        assert opened == []

    def test_raising_handler_does_not_stop_others(self, caplog: pytest.LogCaptureFixture) -> None:
        bus = EventBus()
        received: list[Event] = []

        def broken(event: Event) -> None:
            raise RuntimeError("handler failed")

        bus.subscribe(RenderFailed, broken)
        bus.subscribe(RenderFailed, received.append)

        with caplog.at_level(logging.ERROR, logger="latte.events"):
            delivered = bus.publish(RenderFailed(document_id="a", sequence=3, message="bad"))

        assert len(received) == 1
        assert delivered == 1
        assert "broken failed while handling RenderFailed" in caplog.text

    def test_publish_without_handlers_is_safe(self) -> None:
        assert EventBus().publish(StoreWriteFailed(operation="save_all", key=None, message="full")) == 0


class TestWeakReferences:
    def test_bound_method_handler_is_dropped_with_its_owner(self) -> None:
        bus = EventBus()
        listener = Listener()
        bus.subscribe(PingEvent, listener.on_event)

        bus.publish(PingEvent(message="first"))
        assert len(listener.received) == 1

        del listener
        gc.collect()
        bus.publish(PingEvent(message="second"))

        assert bus.handler_count(PingEvent) == 0

    def test_unsubscribe_bound_method(self) -> None:
        bus = EventBus()
        listener = Listener()
        bus.subscribe(PingEvent, listener.on_event)

        bus.unsubscribe(PingEvent, listener.on_event)

        assert bus.handler_count(PingEvent) == 0


class TestEventTypes:
    def test_defaults(self) -> None:
        assert DocumentCreated(document_id="a", name="A").folder == ""
        assert DocumentOpened(document_id="a").previous_id is None
        assert DocumentSaved(document_id="a", length=3).reason == "autosave"

    def test_events_compare_by_value(self) -> None:
        assert DocumentOpened(document_id="a", previous_id="b") == DocumentOpened(
            document_id="a", previous_id="b"
        )
