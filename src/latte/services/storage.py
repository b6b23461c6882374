"""Synchronous, size-limited key-value media backing the document store."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict, Protocol, runtime_checkable

from ..errors import QuotaExceededError

__all__ = [
    "KeyValueMedium",
    "MemoryMedium",
    "FileMedium",
    "DEFAULT_QUOTA_BYTES",
]

LOGGER = logging.getLogger(__name__)
DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024
_VALUE_SUFFIX = ".value"


@runtime_checkable
class KeyValueMedium(Protocol):
    """String-to-string storage with local, synchronous semantics."""

    def get_item(self, key: str) -> str | None:  # pragma: no cover - protocol stub
        ...

    def set_item(self, key: str, value: str) -> None:  # pragma: no cover - protocol stub
        ...

    def remove_item(self, key: str) -> None:  # pragma: no cover - protocol stub
        ...


def _encoded_size(value: str) -> int:
    return len(value.encode("utf-8"))


class MemoryMedium:
    """Dictionary-backed medium with an optional byte quota."""

    def __init__(self, quota_bytes: int | None = None, initial: Dict[str, str] | None = None) -> None:
        self._quota = quota_bytes
        self._items: Dict[str, str] = dict(initial or {})

    @property
    def items(self) -> Dict[str, str]:
        return dict(self._items)

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._quota is not None:
            used = sum(
                _encoded_size(k) + _encoded_size(v) for k, v in self._items.items() if k != key
            )
            requested = used + _encoded_size(key) + _encoded_size(value)
            if requested > self._quota:
                raise QuotaExceededError(
                    message=f"Writing {key!r} needs {requested} bytes, quota is {self._quota}",
                    quota_bytes=self._quota,
                    requested_bytes=requested,
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileMedium:
    """Stores each key as one UTF-8 file inside ``directory``.

    Writes go to a temporary sibling first and are moved into place, so a
    reader never sees a half-written value.
    """

    def __init__(self, directory: Path | str, *, quota_bytes: int | None = DEFAULT_QUOTA_BYTES) -> None:
        self._directory = Path(directory).expanduser()
        self._quota = quota_bytes

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        slug = re.sub(r"[^A-Za-z0-9._-]", "_", key).strip(".")
        if not slug:
            raise ValueError(f"Unsupported storage key: {key!r}")
        return self._directory / f"{slug}{_VALUE_SUFFIX}"

    def get_item(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        target = self.path_for(key)
        if self._quota is not None:
            requested = self._used_bytes(exclude=target) + _encoded_size(value)
            if requested > self._quota:
                raise QuotaExceededError(
                    message=f"Writing {key!r} needs {requested} bytes, quota is {self._quota}",
                    quota_bytes=self._quota,
                    requested_bytes=requested,
                )
        self._directory.mkdir(parents=True, exist_ok=True)
        tmp_path = target.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(target)
        LOGGER.debug("FileMedium wrote %s (%d chars)", target.name, len(value))

    def remove_item(self, key: str) -> None:
        path = self.path_for(key)
        try:
            os.unlink(path)
        except FileNotFoundError:
            return

    def _used_bytes(self, *, exclude: Path) -> int:
        if not self._directory.exists():
            return 0
        total = 0
        for entry in self._directory.glob(f"*{_VALUE_SUFFIX}"):
            if entry == exclude:
                continue
            try:
                total += entry.stat().st_size
            except FileNotFoundError:
                continue
        return total
