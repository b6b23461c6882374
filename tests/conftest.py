"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from latte.domain.document_index import DocumentIndex
from latte.domain.document_store import DocumentStore
from latte.events import EventBus
from latte.services.storage import MemoryMedium
from tests.helpers import RecordingCompiler


@pytest.fixture
def medium() -> MemoryMedium:
    return MemoryMedium()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def store(medium: MemoryMedium, bus: EventBus) -> DocumentStore:
    return DocumentStore(medium, event_bus=bus)


@pytest.fixture
def index(store: DocumentStore) -> DocumentIndex:
    return DocumentIndex.load(store)


@pytest.fixture
def recording_compiler() -> RecordingCompiler:
    return RecordingCompiler()
