"""The persisted document record and helpers to build it from stored payloads."""

from __future__ import annotations

import random
import string
import time
from dataclasses import asdict, dataclass
from typing import Any, Container, Dict, Mapping, Optional

UNTITLED_NAME = "Untitled"
_BASE36 = string.digits + string.ascii_lowercase
_RANDOM_SUFFIX_LENGTH = 5


def _to_base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_document_id(existing: Container[str] = ()) -> str:
    """Return a new id: base-36 milliseconds plus a short random base-36 suffix.

    The id is regenerated while it collides with ``existing``.
    """

    while True:
        stamp = _to_base36(int(time.time() * 1000))
        suffix = "".join(random.choices(_BASE36, k=_RANDOM_SUFFIX_LENGTH))
        candidate = stamp + suffix
        if candidate not in existing:
            return candidate


def normalize_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    return cleaned or UNTITLED_NAME


def normalize_folder(folder: str | None) -> str:
    return (folder or "").strip()


def is_ungrouped(folder: str | None) -> bool:
    """Return ``True`` when ``folder`` is missing, empty or whitespace-only."""

    return not (folder or "").strip()


@dataclass(slots=True)
class Document:
    """A named, optionally foldered unit of editable source text.

    ``id`` never changes after creation. ``content`` is the only field the
    engine changes afterwards.
    """

    id: str
    name: str = UNTITLED_NAME
    folder: str = ""
    content: str = ""

    def to_payload(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Optional["Document"]:
        """Build a document from a stored mapping, substituting defaults.

        Returns ``None`` when the payload has no usable id.
        """

        raw_id = payload.get("id")
        if raw_id is None or isinstance(raw_id, (dict, list)):
            return None
        document_id = str(raw_id)
        if not document_id:
            return None
        name = payload.get("name")
        folder = payload.get("folder")
        content = payload.get("content")
        return cls(
            id=document_id,
            name=name if isinstance(name, str) and name else UNTITLED_NAME,
            folder=folder if isinstance(folder, str) else "",
            content=content if isinstance(content, str) else "",
        )


__all__ = [
    "Document",
    "UNTITLED_NAME",
    "generate_document_id",
    "normalize_name",
    "normalize_folder",
    "is_ungrouped",
]
