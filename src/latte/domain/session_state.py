"""Explicit session context shared by the controller and the document index."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..editor.document_model import Document


@dataclass(slots=True)
class SessionState:
    """In-memory documents and the current document id for one session.

    A ``current_document_id`` that names no document is treated as no
    current document by :meth:`current_document`.
    """

    documents: list[Document] = field(default_factory=list)
    current_document_id: str | None = None

    @classmethod
    def from_loaded(cls, documents: Iterable[Document], current_id: str | None) -> "SessionState":
        return cls(documents=list(documents), current_document_id=current_id or None)

    def find(self, document_id: str | None) -> Document | None:
        if not document_id:
            return None
        for document in self.documents:
            if document.id == document_id:
                return document
        return None

    def current_document(self) -> Document | None:
        return self.find(self.current_document_id)

    def ids(self) -> set[str]:
        return {document.id for document in self.documents}


__all__ = ["SessionState"]
