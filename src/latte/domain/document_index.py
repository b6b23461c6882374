"""Document index: the in-memory collection, backed by the document store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from ..editor.document_model import (
    Document,
    generate_document_id,
    is_ungrouped,
    normalize_folder,
    normalize_name,
)
from ..errors import NotFoundError
from .document_store import DocumentStore
from .session_state import SessionState

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class FolderGroup:
    """Documents sharing one folder label, in store order."""

    name: str
    documents: list[Document] = field(default_factory=list)


@dataclass(slots=True)
class GroupedDocuments:
    """Grouped view consumed by a file-tree widget.

    ``ungrouped`` holds documents with a blank folder; ``folders`` is sorted
    by folder name.
    """

    ungrouped: list[Document] = field(default_factory=list)
    folders: list[FolderGroup] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.ungrouped and not self.folders

    def folder_names(self) -> list[str]:
        return [group.name for group in self.folders]

    def folder(self, name: str) -> FolderGroup | None:
        for group in self.folders:
            if group.name == name:
                return group
        return None


def group_documents(documents: Iterable[Document]) -> GroupedDocuments:
    """Partition documents into ungrouped and per-folder buckets.

    Buckets match on exact folder text; relative order is kept inside each.
    """

    ungrouped: list[Document] = []
    buckets: dict[str, list[Document]] = {}
    for document in documents:
        if is_ungrouped(document.folder):
            ungrouped.append(document)
            continue
        buckets.setdefault(document.folder, []).append(document)
    folders = [FolderGroup(name=name, documents=buckets[name]) for name in sorted(buckets)]
    return GroupedDocuments(ungrouped=ungrouped, folders=folders)


class DocumentIndex:
    """Create/list/find/update/delete over a :class:`SessionState`.

    Every mutation is persisted immediately through the store. Persistence
    failures are logged by the store and otherwise ignored; the in-memory
    collection stays authoritative for the rest of the session.
    """

    def __init__(self, state: SessionState, store: DocumentStore) -> None:
        self._state = state
        self._store = store

    @classmethod
    def load(cls, store: DocumentStore) -> "DocumentIndex":
        documents, current_id = store.load()
        return cls(SessionState.from_loaded(documents, current_id), store)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def store(self) -> DocumentStore:
        return self._store

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self) -> list[Document]:
        return list(self._state.documents)

    def find(self, document_id: str | None) -> Document | None:
        return self._state.find(document_id)

    def grouped(self) -> GroupedDocuments:
        return group_documents(self._state.documents)

    def __len__(self) -> int:
        return len(self._state.documents)

    def __contains__(self, document_id: object) -> bool:
        return isinstance(document_id, str) and self._state.find(document_id) is not None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, name: str | None, folder: str | None, initial_content: str) -> Document:
        document = Document(
            id=generate_document_id(self._state.ids()),
            name=normalize_name(name),
            folder=normalize_folder(folder),
            content=initial_content,
        )
        self._state.documents.append(document)
        self._store.save_all(self._state.documents)
        LOGGER.debug(
            "DocumentIndex.create: id=%s, name=%r, folder=%r",
            document.id,
            document.name,
            document.folder,
        )
        return document

    def update(self, document_id: str | None, content: str) -> bool:
        """Replace a document's content and persist; unknown ids are a no-op."""

        document = self._state.find(document_id)
        if document is None:
            LOGGER.debug("%s", NotFoundError.for_id(document_id, "update"))
            return False
        document.content = content
        self._store.save_all(self._state.documents)
        return True

    def delete(self, document_id: str | None) -> Document | None:
        document = self._state.find(document_id)
        if document is None:
            LOGGER.debug("%s", NotFoundError.for_id(document_id, "delete"))
            return None
        self._state.documents.remove(document)
        self._store.save_all(self._state.documents)
        if self._state.current_document_id == document.id:
            self.set_current(None)
        LOGGER.debug("DocumentIndex.delete: id=%s", document.id)
        return document

    # ------------------------------------------------------------------
    # Current document
    # ------------------------------------------------------------------

    @property
    def current_id(self) -> str | None:
        return self._state.current_document_id

    def set_current(self, document_id: str | None) -> None:
        self._state.current_document_id = document_id
        self._store.save_current_id(document_id)


__all__ = ["DocumentIndex", "GroupedDocuments", "FolderGroup", "group_documents"]
