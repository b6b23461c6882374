"""Service layer helpers (storage media, settings)."""

from .settings import Settings, SettingsStore
from .storage import FileMedium, KeyValueMedium, MemoryMedium

__all__ = [
    "Settings",
    "SettingsStore",
    "FileMedium",
    "KeyValueMedium",
    "MemoryMedium",
]
