from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from .clock import Scheduler, TimerHandle

TICK_S = 1.0


class BreathPhase(StrEnum):
    IN = "in"
    HOLD = "hold"
    OUT = "out"


# Fixed 4-4-6 rhythm; part of the exercise, not tunable per instance.
PHASE_DURATIONS_S: dict[BreathPhase, int] = {
    BreathPhase.IN: 4,
    BreathPhase.HOLD: 4,
    BreathPhase.OUT: 6,
}
PHASE_ORDER: tuple[BreathPhase, ...] = (BreathPhase.IN, BreathPhase.HOLD, BreathPhase.OUT)
PHASE_LABELS: dict[BreathPhase, str] = {
    BreathPhase.IN: "Udah",
    BreathPhase.HOLD: "Zadrži",
    BreathPhase.OUT: "Izdah",
}
CYCLE_LENGTH_S = sum(PHASE_DURATIONS_S.values())


def next_phase(phase: BreathPhase) -> BreathPhase:
    idx = PHASE_ORDER.index(phase)
    return PHASE_ORDER[(idx + 1) % len(PHASE_ORDER)]


@dataclass(frozen=True, slots=True)
class BreathingSnapshot:
    phase: BreathPhase
    label: str
    seconds_left: int
    running: bool


class BreathingCycle:
    """Repeating IN -> HOLD -> OUT pacer with a one-second tick.

    Never stops on its own; only stop()/toggle_running()/reset()/close() halt it.
    """

    def __init__(
        self,
        *,
        scheduler: Scheduler,
        on_phase_change: Callable[[BreathPhase], None] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._on_phase_change = on_phase_change
        self._phase = BreathPhase.IN
        self._seconds_left = PHASE_DURATIONS_S[BreathPhase.IN]
        self._running = False
        self._handle: TimerHandle | None = None

    @property
    def phase(self) -> BreathPhase:
        return self._phase

    @property
    def seconds_left(self) -> int:
        return self._seconds_left

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._schedule_tick()

    def stop(self) -> None:
        self._cancel_tick()
        self._running = False

    def toggle_running(self) -> bool:
        if self._running:
            self.stop()
        else:
            self.start()
        return self._running

    def reset(self) -> None:
        self._cancel_tick()
        self._running = False
        self._phase = BreathPhase.IN
        self._seconds_left = PHASE_DURATIONS_S[BreathPhase.IN]

    def close(self) -> None:
        self.stop()

    def snapshot(self) -> BreathingSnapshot:
        return BreathingSnapshot(
            phase=self._phase,
            label=PHASE_LABELS[self._phase],
            seconds_left=self._seconds_left,
            running=self._running,
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
        if not self._running:
            return
        if self._seconds_left <= 1:
            self._phase = next_phase(self._phase)
            self._seconds_left = PHASE_DURATIONS_S[self._phase]
            if self._on_phase_change is not None:
                self._on_phase_change(self._phase)
        else:
            self._seconds_left -= 1
        if self._running:
            self._schedule_tick()
