from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from .clock import Scheduler, TimerHandle
from .cues import SILENT, CueBoard

logger = logging.getLogger(__name__)

PRESET_MINUTES: tuple[int, ...] = (1, 3, 5, 10)
DEFAULT_PRESET_MINUTES = 5
TICK_S = 1.0

# remaining seconds -> announcement
MILESTONES: tuple[tuple[int, str], ...] = (
    (5 * 60, "Još 5 minuta."),
    (60, "Još 1 minuta."),
)
FINISHED_ANNOUNCEMENT = "Vrijeme je!"
FINISHED_SPEECH = "Vrijeme je."
REJECTED_ANNOUNCEMENT = "Odaberi trajanje dulje od 0 sekundi."


class TimerStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass(frozen=True, slots=True)
class CountdownSnapshot:
    """View model for the UI (pure data)."""

    status: TimerStatus
    total_s: int
    remaining_s: int
    running: bool
    preset_minutes: int
    display: str
    announcement: str | None


def format_mmss(total_s: int) -> str:
    total_s = max(0, int(total_s))
    return f"{total_s // 60:02d}:{total_s % 60:02d}"


class CountdownTimer:
    """Transition timer: counts down once per second and announces milestones.

    IDLE -> RUNNING -> (IDLE | FINISHED). At most one tick is scheduled at any
    time; start/stop/reset/close cancel the pending one first.
    """

    def __init__(
        self,
        *,
        scheduler: Scheduler,
        cues: CueBoard = SILENT,
        preset_minutes: int = DEFAULT_PRESET_MINUTES,
        on_milestone: Callable[[int, str], None] | None = None,
        on_finished: Callable[[], None] | None = None,
    ) -> None:
        if preset_minutes not in PRESET_MINUTES:
            raise ValueError(f"preset_minutes must be one of {PRESET_MINUTES}")
        self._scheduler = scheduler
        self._cues = cues
        self._preset_minutes = int(preset_minutes)
        self._on_milestone = on_milestone
        self._on_finished = on_finished

        self._status = TimerStatus.IDLE
        self._total_s = 0
        self._remaining_s = 0
        self._announcement: str | None = None
        self._fired_milestones: set[int] = set()
        self._handle: TimerHandle | None = None

    @property
    def status(self) -> TimerStatus:
        return self._status

    @property
    def running(self) -> bool:
        return self._status is TimerStatus.RUNNING

    @property
    def remaining_s(self) -> int:
        return self._remaining_s

    @property
    def total_s(self) -> int:
        return self._total_s

    @property
    def preset_minutes(self) -> int:
        return self._preset_minutes

    @property
    def announcement(self) -> str | None:
        return self._announcement

    def select_preset(self, minutes: int) -> None:
        if minutes not in PRESET_MINUTES:
            raise ValueError(f"minutes must be one of {PRESET_MINUTES}")
        self._preset_minutes = int(minutes)

    def start(self, duration_s: int | None = None) -> bool:
        """Start (or restart) a countdown. Returns False if rejected."""

        if duration_s is None:
            duration_s = self._preset_minutes * 60
        duration_s = int(duration_s)
        if duration_s <= 0:
            self._announcement = REJECTED_ANNOUNCEMENT
            return False

        self._cancel_tick()
        self._total_s = duration_s
        self._remaining_s = duration_s
        self._status = TimerStatus.RUNNING
        self._announcement = None
        self._fired_milestones.clear()
        logger.debug("countdown started: %ss", duration_s)

        # Seeding counts as arriving from one second above the duration.
        self._check_milestones(previous_s=duration_s + 1, current_s=duration_s)
        self._schedule_tick()
        return True

    def stop(self) -> None:
        self._cancel_tick()
        if self._status is TimerStatus.RUNNING:
            self._status = TimerStatus.IDLE

    def reset(self) -> None:
        self._cancel_tick()
        self._status = TimerStatus.IDLE
        self._total_s = 0
        self._remaining_s = 0
        self._announcement = None
        self._fired_milestones.clear()

    def close(self) -> None:
        self._cancel_tick()

    def snapshot(self) -> CountdownSnapshot:
        if self._remaining_s > 0:
            display = format_mmss(self._remaining_s)
        else:
            display = f"{self._preset_minutes}:00"
        return CountdownSnapshot(
            status=self._status,
            total_s=self._total_s,
            remaining_s=self._remaining_s,
            running=self.running,
            preset_minutes=self._preset_minutes,
            display=display,
            announcement=self._announcement,
        )

    def _schedule_tick(self) -> None:
        self._cancel_tick()
        self._handle = self._scheduler.call_later(TICK_S, self._tick)

    def _cancel_tick(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self) -> None:
        self._handle = None
        if self._status is not TimerStatus.RUNNING:
            return

        previous_s = self._remaining_s
        self._remaining_s = max(0, previous_s - 1)
        self._check_milestones(previous_s=previous_s, current_s=self._remaining_s)

        if self._remaining_s == 0:
            self._finish()
            return
        self._schedule_tick()

    def _check_milestones(self, *, previous_s: int, current_s: int) -> None:
        for threshold_s, text in MILESTONES:
            if threshold_s in self._fired_milestones:
                continue
            if previous_s > threshold_s >= current_s:
                self._fired_milestones.add(threshold_s)
                self._announcement = text
                logger.debug("milestone %ss", threshold_s)
                self._cues.speak(text)
                if self._on_milestone is not None:
                    self._on_milestone(threshold_s, text)

    def _finish(self) -> None:
        self._status = TimerStatus.FINISHED
        self._announcement = FINISHED_ANNOUNCEMENT
        logger.debug("countdown finished after %ss", self._total_s)
        self._cues.play_cue()
        self._cues.speak(FINISHED_SPEECH)
        if self._on_finished is not None:
            self._on_finished()
