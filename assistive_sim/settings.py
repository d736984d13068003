from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

from .store import KeyValueStore, record_key

SETTINGS_KEY = record_key("autism", "settings", 1)
REFLECTION_KEY = record_key("movement", "reflection", 1)


@dataclass(frozen=True, slots=True)
class LowStimSettings:
    large_text: bool = False
    reduced_motion: bool = True
    high_contrast: bool = False
    enable_speech: bool = False
    enable_beep: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "largeText": bool(self.large_text),
            "reducedMotion": bool(self.reduced_motion),
            "highContrast": bool(self.high_contrast),
            "enableSpeech": bool(self.enable_speech),
            "enableBeep": bool(self.enable_beep),
        }

    @classmethod
    def from_dict(cls, data: object) -> "LowStimSettings":
        if not isinstance(data, dict):
            return cls()
        defaults = cls()
        return cls(
            large_text=_as_bool(data.get("largeText"), defaults.large_text),
            reduced_motion=_as_bool(data.get("reducedMotion"), defaults.reduced_motion),
            high_contrast=_as_bool(data.get("highContrast"), defaults.high_contrast),
            enable_speech=_as_bool(data.get("enableSpeech"), defaults.enable_speech),
            enable_beep=_as_bool(data.get("enableBeep"), defaults.enable_beep),
        )


SETTING_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(LowStimSettings))


@dataclass(frozen=True, slots=True)
class Reflection:
    q1: str = ""
    q2: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"q1": self.q1, "q2": self.q2}

    @classmethod
    def from_dict(cls, data: object) -> "Reflection":
        if not isinstance(data, dict):
            return cls()
        return cls(q1=_as_str(data.get("q1")), q2=_as_str(data.get("q2")))


def _as_bool(value: object, fallback: bool) -> bool:
    return value if isinstance(value, bool) else fallback


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""


class SettingsRepository:
    """Owns the low-stim settings record and keeps the current value in memory."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._current = self.load()

    @property
    def current(self) -> LowStimSettings:
        return self._current

    def load(self) -> LowStimSettings:
        return LowStimSettings.from_dict(self._store.read(SETTINGS_KEY, None))

    def save(self, settings: LowStimSettings) -> bool:
        self._current = settings
        return self._store.write(SETTINGS_KEY, settings.to_dict())

    def toggle(self, field_name: str) -> LowStimSettings:
        if field_name not in SETTING_FIELDS:
            raise ValueError(f"unknown setting: {field_name}")
        updated = replace(self._current, **{field_name: not getattr(self._current, field_name)})
        self.save(updated)
        return updated


class ReflectionRepository:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def load(self) -> Reflection:
        return Reflection.from_dict(self._store.read(REFLECTION_KEY, None))

    def save(self, reflection: Reflection) -> bool:
        return self._store.write(REFLECTION_KEY, reflection.to_dict())

    def clear(self) -> Reflection:
        empty = Reflection()
        self.save(empty)
        return empty
