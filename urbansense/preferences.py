"""Persisted user preferences (active language and mock mode)."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Protocol

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Preferences:
    language: str | None = None
    mock_mode: bool | None = None


class PreferenceStore(Protocol):
    def load(self) -> Preferences: ...

    def save(self, prefs: Preferences) -> None: ...


class MemoryPreferenceStore:
    def __init__(self, prefs: Preferences | None = None) -> None:
        self.prefs = prefs or Preferences()
        self.saves = 0

    def load(self) -> Preferences:
        return self.prefs

    def save(self, prefs: Preferences) -> None:
        self.prefs = prefs
        self.saves += 1


class JsonPreferenceStore:
    """Key-value preferences in a small JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> Preferences:
        if not self.path.exists():
            return Preferences()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable preferences at %s: %s", self.path, exc)
            return Preferences()
        if not isinstance(data, dict):
            return Preferences()
        language = data.get("language")
        mock_mode = data.get("mock_mode")
        return Preferences(
            language=language if isinstance(language, str) else None,
            mock_mode=mock_mode if isinstance(mock_mode, bool) else None,
        )

    def save(self, prefs: Preferences) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(prefs), ensure_ascii=False), encoding="utf-8")


__all__ = ["JsonPreferenceStore", "MemoryPreferenceStore", "PreferenceStore", "Preferences"]
