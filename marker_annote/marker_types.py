# marker_annote/marker_types.py
from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional

from PyQt5.QtCore import QObject, QSettings, pyqtSignal

from .config import PREFERENCES_KEY, SETTINGS_APP, SETTINGS_ORG
from .domain import (
    DEFAULT_MARKER_TYPES,
    MARKER_COLOR_POOL,
    NEUTRAL_COLOR,
    MarkerType,
    normalize_type,
)

logger = logging.getLogger(__name__)


# -----------------------------
# Preference stores (flat key -> string)
# -----------------------------

class PreferenceStore:
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryPreferenceStore(PreferenceStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class QSettingsPreferenceStore(PreferenceStore):
    """Durable per-user preferences backed by QSettings."""

    def __init__(self, settings: Optional[QSettings] = None):
        self._settings = settings or QSettings(SETTINGS_ORG, SETTINGS_APP)

    def get(self, key: str) -> Optional[str]:
        value = self._settings.value(key, None)
        return str(value) if value is not None else None

    def set(self, key: str, value: str) -> None:
        self._settings.setValue(key, value)
        self._settings.sync()
        if self._settings.status() != QSettings.NoError:
            raise OSError(f"QSettings write failed (status={self._settings.status()})")


# -----------------------------
# Registry
# -----------------------------

class MarkerTypeRegistry(QObject):
    """
    Normalized type key -> MarkerType (color + display name).

    Types are created on first reference and the whole registry is written to
    the preference store after every creation. The in-memory registry stays
    authoritative when that write fails.

    Also holds the "active" type: the type new markers are created with.
    """
    types_changed = pyqtSignal()
    active_changed = pyqtSignal(object)  # str | None

    def __init__(self, prefs: Optional[PreferenceStore] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._prefs: PreferenceStore = prefs if prefs is not None else MemoryPreferenceStore()
        self._types: Dict[str, MarkerType] = {}
        self._active: Optional[str] = None

    # ---------------- Persistence ----------------

    def load(self) -> None:
        try:
            stored = self._prefs.get(PREFERENCES_KEY)
            if stored:
                raw = json.loads(stored)
                if not isinstance(raw, dict):
                    raise ValueError("stored marker types must be a JSON object")
                self._types = {
                    normalize_type(k): MarkerType.from_dict(k, v)
                    for k, v in raw.items()
                    if normalize_type(k) and isinstance(v, dict)
                }
                logger.info("Loaded %d marker types from preferences", len(self._types))
            else:
                self._types = {
                    key: MarkerType(key=key, hex=MARKER_COLOR_POOL[i % len(MARKER_COLOR_POOL)], display_name=name)
                    for i, (key, name) in enumerate(DEFAULT_MARKER_TYPES)
                }
                self.save()
                logger.info("No stored marker types; initialized defaults")
        except Exception as e:
            logger.error("Failed to load marker types: %s", e)
            self._types = {}
        self.types_changed.emit()

    def save(self) -> None:
        payload = {k: t.to_dict() for k, t in self._types.items()}
        try:
            self._prefs.set(PREFERENCES_KEY, json.dumps(payload, ensure_ascii=False))
            logger.debug("Marker types saved")
        except Exception as e:
            logger.error("Failed to save marker types: %s", e)

    # ---------------- Lookup ----------------

    @staticmethod
    def normalize(type_name: Optional[str]) -> str:
        return normalize_type(type_name)

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, type_name: str) -> bool:
        return normalize_type(type_name) in self._types

    def keys(self) -> List[str]:
        return list(self._types.keys())

    def types(self) -> List[MarkerType]:
        return list(self._types.values())

    def get(self, type_name: Optional[str]) -> Optional[MarkerType]:
        return self._types.get(normalize_type(type_name))

    def color_for(self, type_name: Optional[str]) -> str:
        """Color of a known type; neutral for empty or unknown types (no registration)."""
        info = self.get(type_name)
        return info.hex if info is not None else NEUTRAL_COLOR

    # ---------------- Creation ----------------

    def resolve(self, type_name: Optional[str]) -> str:
        """Return the type's color, registering the type first if unknown."""
        key = normalize_type(type_name)
        if not key:
            return NEUTRAL_COLOR

        existing = self._types.get(key)
        if existing is not None:
            return existing.hex

        hex_color = MARKER_COLOR_POOL[len(self._types) % len(MARKER_COLOR_POOL)]
        self._types[key] = MarkerType(key=key, hex=hex_color, display_name=str(type_name).strip())
        self.save()
        logger.info("Registered marker type %r with color %s", key, hex_color)
        self.types_changed.emit()
        return hex_color

    def create(self, type_name: Optional[str]) -> Optional[str]:
        """User action: register (if needed) and make it the active type."""
        key = normalize_type(type_name)
        if not key:
            logger.warning("Refusing to create an empty marker type")
            return None
        self.resolve(type_name)
        if self._active != key:
            self.set_active(key)
        return key

    # ---------------- Active type ----------------

    @property
    def active(self) -> Optional[str]:
        return self._active

    def set_active(self, type_name: Optional[str]) -> Optional[str]:
        """Toggle: selecting the already-active type clears it."""
        key = normalize_type(type_name) or None
        if key is None or key == self._active:
            self._active = None
            logger.info("Marker mode cleared")
        else:
            self._active = key
            info = self._types.get(key)
            logger.info("Marker mode: %s", info.display_name if info else key)
        self.active_changed.emit(self._active)
        return self._active

    def clear_active(self) -> None:
        if self._active is None:
            return
        self._active = None
        self.active_changed.emit(None)
