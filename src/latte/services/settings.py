"""Engine settings and their JSON file, with ``LATTE_*`` environment overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Tuple

from .storage import DEFAULT_QUOTA_BYTES

__all__ = [
    "Settings",
    "SettingsStore",
    "EMPTY_START_CHOICES",
    "SETTINGS_DIR",
]

LOGGER = logging.getLogger(__name__)

SETTINGS_DIR = Path.home() / ".latte"
SETTINGS_FILENAME = "settings.json"
SETTINGS_FORMAT_VERSION = 1
EMPTY_START_CHOICES: tuple[str, ...] = ("welcome", "blank", "create")


def _parse_flag(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on", "debug"}


# Environment variable -> (settings field, parser). Values that fail to parse are ignored.
_ENVIRONMENT: Mapping[str, Tuple[str, Callable[[str], Any]]] = {
    "LATTE_STORAGE_DIR": ("storage_dir", str),
    "LATTE_EMPTY_START": ("empty_start", str),
    "LATTE_DEFAULT_TEMPLATE": ("default_template", str),
    "LATTE_DEBUG_LOGGING": ("debug_logging", _parse_flag),
    "LATTE_RENDER_DEBOUNCE": ("render_debounce_seconds", float),
    "LATTE_AUTOSAVE_DEBOUNCE": ("autosave_debounce_seconds", float),
    "LATTE_STORAGE_QUOTA": ("storage_quota_bytes", int),
}


@dataclass(slots=True)
class Settings:
    """Tunable behaviour of a session.

    Debounce intervals are in seconds. ``empty_start`` is one of
    :data:`EMPTY_START_CHOICES`.
    """

    render_debounce_seconds: float = 0.45
    autosave_debounce_seconds: float = 1.0
    storage_dir: str = str(SETTINGS_DIR / "storage")
    storage_quota_bytes: int = DEFAULT_QUOTA_BYTES
    empty_start: str = "welcome"
    default_template: str = "blank"
    debug_logging: bool = False

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(item.name for item in fields(cls))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Settings":
        """Build settings from stored data, ignoring unknown keys and bad values."""

        known = cls.field_names()
        return cls().merged({key: value for key, value in data.items() if key in known})

    def merged(self, values: Mapping[str, Any], *, source: str = "runtime") -> "Settings":
        """Return a copy with ``values`` applied; ``None`` values and unknown keys are skipped."""

        known = self.field_names()
        updates = {key: value for key, value in values.items() if key in known and value is not None}
        if not updates:
            return self
        LOGGER.debug("Applying %s settings: %s", source, sorted(updates))
        return replace(self, **updates).sanitized()

    def sanitized(self) -> "Settings":
        defaults = Settings()
        fixes: Dict[str, Any] = {}
        if self.empty_start not in EMPTY_START_CHOICES:
            LOGGER.warning("Unknown empty_start %r; using %r", self.empty_start, defaults.empty_start)
            fixes["empty_start"] = defaults.empty_start
        for name in ("render_debounce_seconds", "autosave_debounce_seconds"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                LOGGER.warning("Invalid %s %r; using the default", name, value)
                fixes[name] = getattr(defaults, name)
        return replace(self, **fixes) if fixes else self

    def to_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["version"] = SETTINGS_FORMAT_VERSION
        return payload


class SettingsStore:
    """Reads and writes :class:`Settings` as a JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or SETTINGS_DIR / SETTINGS_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Stored values first, then ``LATTE_*`` environment variables, then ``overrides``."""

        settings = Settings.from_mapping(self._read_payload())
        settings = settings.merged(environment_overrides(), source="environment")
        if overrides:
            settings = settings.merged(overrides)
        return settings

    def save(self, settings: Settings) -> Path:
        body = json.dumps(settings.to_payload(), indent=2, sort_keys=True)
        _write_atomically(self._path, body)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except ValueError as exc:
            LOGGER.warning("Ignoring unreadable settings file %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            LOGGER.warning("Ignoring settings file %s: expected a JSON object", self._path)
            return {}
        return data


def environment_overrides(environ: Mapping[str, str] | None = None) -> Dict[str, Any]:
    """Collect typed settings values from ``LATTE_*`` variables."""

    source = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for env_name, (field_name, parse) in _ENVIRONMENT.items():
        raw = source.get(env_name)
        if raw is None:
            continue
        try:
            values[field_name] = parse(raw)
        except ValueError:
            LOGGER.warning("Ignoring %s=%r: not a valid %s", env_name, raw, parse.__name__)
    return values


def _write_atomically(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    staging = path.with_name(path.name + ".tmp")
    staging.write_text(text, encoding="utf-8")
    staging.replace(path)
