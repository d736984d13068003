from __future__ import annotations

import logging
import re
import secrets
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from .store import KeyValueStore, record_key

logger = logging.getLogger(__name__)

SCHEDULE_KEY = record_key("autism", "schedule", 1)

SEED_ITEMS: tuple[tuple[str, str], ...] = (
    ("07:30", "Jutarnja rutina"),
    ("08:00", "Doručak"),
    ("10:30", "Pauza (tiho mjesto)"),
    ("12:00", "Ručak"),
    ("16:00", "Slobodno vrijeme"),
)

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True, slots=True)
class ScheduleItem:
    item_id: str
    time: str  # "HH:MM"
    title: str
    done: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.item_id, "time": self.time, "title": self.title, "done": bool(self.done)}

    @classmethod
    def from_dict(cls, data: object) -> "ScheduleItem | None":
        if not isinstance(data, dict):
            return None
        item_id = data.get("id")
        time_s = data.get("time")
        title = data.get("title")
        if not isinstance(item_id, str) or not isinstance(title, str) or not isinstance(time_s, str):
            return None
        if not is_valid_time(time_s):
            return None
        return cls(item_id=item_id, time=time_s, title=title, done=data.get("done") is True)


def is_valid_time(value: str) -> bool:
    return _TIME_RE.match(value) is not None


def minutes_from_time(value: str) -> int:
    m = _TIME_RE.match(value)
    if m is None:
        raise ValueError(f"time must be HH:MM, got {value!r}")
    return int(m.group(1)) * 60 + int(m.group(2))


def new_item_id() -> str:
    return secrets.token_hex(8)


class VisualSchedule:
    """Ordered daily schedule persisted under one record key.

    An empty or unreadable record is replaced by the seeded day plan.
    """

    def __init__(self, store: KeyValueStore, *, id_factory: Callable[[], str] = new_item_id) -> None:
        self._store = store
        self._new_id = id_factory
        self._items: list[ScheduleItem] = self._load()

    def items(self) -> list[ScheduleItem]:
        # sorted() is stable: items sharing a time keep insertion order.
        return sorted(self._items, key=lambda it: minutes_from_time(it.time))

    def get(self, item_id: str) -> ScheduleItem | None:
        return next((it for it in self._items if it.item_id == item_id), None)

    def add(self, time: str, title: str) -> ScheduleItem | None:
        cleaned = title.strip()
        if cleaned == "":
            return None
        if not is_valid_time(time):
            raise ValueError(f"time must be HH:MM, got {time!r}")
        item = ScheduleItem(item_id=self._new_id(), time=time, title=cleaned)
        self._items.append(item)
        self._save()
        return item

    def toggle_done(self, item_id: str) -> bool:
        for idx, item in enumerate(self._items):
            if item.item_id == item_id:
                self._items[idx] = replace(item, done=not item.done)
                self._save()
                return True
        return False

    def remove(self, item_id: str) -> bool:
        before = len(self._items)
        self._items = [it for it in self._items if it.item_id != item_id]
        if len(self._items) == before:
            return False
        self._save()
        return True

    def reset_to_seed(self) -> None:
        self._store.delete(SCHEDULE_KEY)
        self._items = self._seed()
        self._save()

    def _load(self) -> list[ScheduleItem]:
        raw = self._store.read(SCHEDULE_KEY, [])
        loaded: list[ScheduleItem] = []
        if isinstance(raw, list):
            for entry in raw:
                item = ScheduleItem.from_dict(entry)
                if item is None:
                    logger.warning("dropping malformed schedule entry: %r", entry)
                    continue
                loaded.append(item)
        return loaded if loaded else self._seed()

    def _seed(self) -> list[ScheduleItem]:
        return [ScheduleItem(item_id=self._new_id(), time=t, title=title) for t, title in SEED_ITEMS]

    def _save(self) -> None:
        self._store.write(SCHEDULE_KEY, [it.to_dict() for it in self._items])
