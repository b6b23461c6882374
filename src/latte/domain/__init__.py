"""Domain layer: persistence, the document index and the session controller.

Domain Managers:
    - DocumentStore: best-effort persistence on a key-value medium
    - DocumentIndex: in-memory documents, grouping and current id
    - SessionController: current document, auto-save and preview rendering

All managers receive their collaborators through the constructor and hold
no module-level state.
"""

from __future__ import annotations

from .document_index import DocumentIndex, FolderGroup, GroupedDocuments, group_documents
from .document_store import DocumentStore
from .session_controller import EditorSurface, SessionController, SessionMode
from .session_state import SessionState

__all__: list[str] = [
    "DocumentIndex",
    "DocumentStore",
    "EditorSurface",
    "FolderGroup",
    "GroupedDocuments",
    "SessionController",
    "SessionMode",
    "SessionState",
    "group_documents",
]
