"""Document store: best-effort persistence of documents and the current id.

Reads never raise; a payload that cannot be parsed loads as a first run.
Writes never raise either; a rejected write comes back as a
:class:`~latte.errors.StoreError` so callers can ignore it and keep editing.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..editor.document_model import Document
from ..errors import ErrorCode, StoreError
from ..events import StoreWriteFailed

if TYPE_CHECKING:  # pragma: no cover
    from ..events import EventBus
    from ..services.storage import KeyValueMedium

LOGGER = logging.getLogger(__name__)

FILES_KEY = "latte_files_v1"
CURRENT_KEY = "latte_current_v1"


class DocumentStore:
    """Key-value persistence for the document collection.

    Two records are kept: ``files`` (a JSON array of document objects) and
    ``current`` (the id of the last open document, absent when none).
    """

    def __init__(
        self,
        medium: KeyValueMedium,
        *,
        files_key: str = FILES_KEY,
        current_key: str = CURRENT_KEY,
        event_bus: EventBus | None = None,
    ) -> None:
        self._medium = medium
        self._files_key = files_key
        self._current_key = current_key
        self._bus = event_bus

    @property
    def medium(self) -> KeyValueMedium:
        return self._medium

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def load(self) -> tuple[list[Document], str | None]:
        """Return the stored documents and current id.

        A files record that cannot be read or parsed yields ``([], None)``,
        whatever the stored current id. Entries that cannot be read are
        skipped and missing fields get defaults.
        """

        documents = self._load_documents()
        if documents is None:
            return [], None
        current_id = self._load_current_id()
        LOGGER.debug(
            "DocumentStore.load: %d documents, current_id=%s",
            len(documents),
            current_id,
        )
        return documents, current_id

    def _load_documents(self) -> list[Document] | None:
        """Parse the files record; ``None`` when it cannot be read or parsed."""

        try:
            raw = self._medium.get_item(self._files_key)
        except Exception as exc:
            LOGGER.warning("DocumentStore.load: medium read failed: %s", exc)
            return None
        if not raw:
            return []
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as exc:
            LOGGER.warning("DocumentStore.load: stored documents are not valid JSON: %s", exc)
            return None
        if not isinstance(payload, list):
            LOGGER.warning(
                "DocumentStore.load: expected a list of documents, got %s",
                type(payload).__name__,
            )
            return None

        documents: list[Document] = []
        seen: set[str] = set()
        for entry in payload:
            if not isinstance(entry, Mapping):
                continue
            document = Document.from_payload(entry)
            if document is None or document.id in seen:
                continue
            seen.add(document.id)
            documents.append(document)
        return documents

    def _load_current_id(self) -> str | None:
        try:
            raw = self._medium.get_item(self._current_key)
        except Exception as exc:
            LOGGER.warning("DocumentStore.load: current id read failed: %s", exc)
            return None
        return raw or None

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def save_all(self, documents: Iterable[Document]) -> StoreError | None:
        """Persist the whole collection; returns a :class:`StoreError` on failure."""

        try:
            body = json.dumps([document.to_payload() for document in documents])
        except (TypeError, ValueError) as exc:
            return self._report("save_all", self._files_key, exc)
        return self._write(self._files_key, body, operation="save_all")

    def save_current_id(self, document_id: str | None) -> StoreError | None:
        """Persist the current id; ``None`` removes the record."""

        if document_id:
            return self._write(self._current_key, document_id, operation="save_current_id")
        try:
            self._medium.remove_item(self._current_key)
        except Exception as exc:
            return self._report("save_current_id", self._current_key, exc)
        return None

    def _write(self, key: str, value: str, *, operation: str) -> StoreError | None:
        try:
            self._medium.set_item(key, value)
        except Exception as exc:
            return self._report(operation, key, exc)
        LOGGER.debug("DocumentStore.%s: wrote %s (%d chars)", operation, key, len(value))
        return None

    def _report(self, operation: str, key: str, exc: Exception) -> StoreError:
        error = StoreError(
            message=f"{operation} failed for {key!r}: {exc}",
            details=_error_details(exc),
            operation=operation,
            key=key,
        )
        if getattr(exc, "error_code", None) == ErrorCode.QUOTA_EXCEEDED:
            error.details["quota_exceeded"] = True
        LOGGER.warning("DocumentStore.%s: %s", operation, error.message)
        if self._bus is not None:
            self._bus.publish(StoreWriteFailed(operation=operation, key=key, message=error.message))
        return error


def _error_details(exc: Exception) -> dict[str, Any]:
    return {"exception": type(exc).__name__}


__all__ = ["DocumentStore", "FILES_KEY", "CURRENT_KEY"]
