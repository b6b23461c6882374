"""Tests for the document index and folder grouping."""

from __future__ import annotations

import json

from latte.domain.document_index import DocumentIndex, group_documents
from latte.domain.document_store import CURRENT_KEY, FILES_KEY, DocumentStore
from latte.editor.document_model import UNTITLED_NAME, Document
from latte.services.storage import MemoryMedium
from tests.helpers import RejectingMedium


def _stored_ids(medium: MemoryMedium) -> list[str]:
    return [entry["id"] for entry in json.loads(medium.get_item(FILES_KEY) or "[]")]


class TestCreateAndFind:
    def test_create_then_find(self, index: DocumentIndex) -> None:
        created = index.create("Essay", "Drafts", "# Essay")

        found = index.find(created.id)

        assert found is created
        assert found.name == "Essay"
        assert found.folder == "Drafts"
        assert found.content == "# Essay"

    def test_create_normalizes_name_and_folder(self, index: DocumentIndex) -> None:
        created = index.create("   ", "  Notes  ", "")

        assert created.name == UNTITLED_NAME
        assert created.folder == "Notes"

    def test_create_persists_immediately(self, index: DocumentIndex, medium: MemoryMedium) -> None:
        first = index.create("A", "", "a")
        second = index.create("B", "", "b")

        assert _stored_ids(medium) == [first.id, second.id]

    def test_created_ids_are_unique(self, index: DocumentIndex) -> None:
        ids = {index.create(f"Doc {n}", "", "").id for n in range(50)}

        assert len(ids) == 50
        assert len(index) == 50

    def test_find_unknown_or_empty_id(self, index: DocumentIndex) -> None:
        index.create("A", "", "")

        assert index.find("missing") is None
        assert index.find("") is None
        assert index.find(None) is None

    def test_contains(self, index: DocumentIndex) -> None:
        created = index.create("A", "", "")

        assert created.id in index
        assert "other" not in index
        assert 3 not in index

    def test_list_is_a_copy_in_store_order(self, index: DocumentIndex) -> None:
        first = index.create("A", "", "")
        second = index.create("B", "", "")

        listing = index.list()
        listing.clear()

        assert [document.id for document in index.list()] == [first.id, second.id]


class TestUpdateAndDelete:
    def test_update_replaces_content_and_persists(self, index: DocumentIndex, medium: MemoryMedium) -> None:
        created = index.create("A", "", "old")

        assert index.update(created.id, "new") is True

        assert index.find(created.id).content == "new"
        stored = json.loads(medium.get_item(FILES_KEY) or "[]")
        assert stored[0]["content"] == "new"

    def test_update_unknown_id_is_a_noop(self, index: DocumentIndex, medium: MemoryMedium) -> None:
        index.create("A", "", "old")
        before = medium.get_item(FILES_KEY)

        assert index.update("missing", "new") is False

        assert medium.get_item(FILES_KEY) == before

    def test_delete_removes_and_persists(self, index: DocumentIndex, medium: MemoryMedium) -> None:
        first = index.create("A", "", "")
        second = index.create("B", "", "")

        removed = index.delete(first.id)

        assert removed is first
        assert index.find(first.id) is None
        assert _stored_ids(medium) == [second.id]

    def test_delete_current_clears_current(self, index: DocumentIndex, medium: MemoryMedium) -> None:
        created = index.create("A", "", "")
        index.set_current(created.id)
        assert medium.get_item(CURRENT_KEY) == created.id

        index.delete(created.id)

        assert index.current_id is None
        assert medium.get_item(CURRENT_KEY) is None

    def test_delete_unknown_id(self, index: DocumentIndex) -> None:
        assert index.delete("missing") is None


class TestLoad:
    def test_load_restores_documents_and_current(self) -> None:
        medium = MemoryMedium()
        index = DocumentIndex.load(DocumentStore(medium))
        created = index.create("A", "Notes", "body")
        index.set_current(created.id)

        reloaded = DocumentIndex.load(DocumentStore(medium))

        assert reloaded.list() == [created]
        assert reloaded.current_id == created.id
        assert reloaded.state.current_document() == created

    def test_dangling_current_id_resolves_to_no_document(self) -> None:
        medium = MemoryMedium(initial={FILES_KEY: json.dumps([{"id": "a"}]), CURRENT_KEY: "gone"})

        index = DocumentIndex.load(DocumentStore(medium))

        assert index.current_id == "gone"
        assert index.state.current_document() is None


class TestRejectedWrites:
    """The in-memory collection stays authoritative when the medium is full."""

    def test_mutations_are_visible_despite_rejected_writes(self) -> None:
        medium = RejectingMedium()
        index = DocumentIndex.load(DocumentStore(medium))

        created = index.create("A", "", "draft")
        index.update(created.id, "edited")
        index.set_current(created.id)

        assert medium.attempts >= 3
        assert index.find(created.id).content == "edited"
        assert index.current_id == created.id
        assert [document.id for document in index.list()] == [created.id]


class TestGrouping:
    def test_blank_and_missing_folders_are_ungrouped(self) -> None:
        documents = [
            Document(id="a", folder=""),
            Document(id="b", folder="  "),
            Document.from_payload({"id": "c"}),
        ]

        grouped = group_documents(documents)

        assert [document.id for document in grouped.ungrouped] == ["a", "b", "c"]
        assert grouped.folders == []

    def test_folders_sorted_and_order_kept_within(self) -> None:
        documents = [
            Document(id="1", folder="Notes"),
            Document(id="2", folder="Archive"),
            Document(id="3", folder=""),
            Document(id="4", folder="Notes"),
        ]

        grouped = group_documents(documents)

        assert grouped.folder_names() == ["Archive", "Notes"]
        assert [document.id for document in grouped.folder("Notes").documents] == ["1", "4"]
        assert [document.id for document in grouped.ungrouped] == ["3"]
        assert grouped.folder("Missing") is None

    def test_folder_match_is_exact(self) -> None:
        grouped = group_documents([Document(id="1", folder="Notes"), Document(id="2", folder="notes")])

        assert grouped.folder_names() == ["Notes", "notes"]

    def test_empty_collection(self, index: DocumentIndex) -> None:
        assert index.grouped().is_empty

    def test_index_grouped_reflects_creates(self, index: DocumentIndex) -> None:
        index.create("A", "Notes", "")
        index.create("B", "", "")

        grouped = index.grouped()

        assert grouped.folder_names() == ["Notes"]
        assert len(grouped.ungrouped) == 1
        assert not grouped.is_empty
