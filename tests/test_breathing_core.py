from __future__ import annotations

from dataclasses import dataclass

from assistive_sim.breathing import (
    CYCLE_LENGTH_S,
    PHASE_DURATIONS_S,
    BreathingCycle,
    BreathPhase,
    next_phase,
)
from assistive_sim.clock import Scheduler


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def _run(clock: FakeClock, sched: Scheduler, seconds: int) -> None:
    for _ in range(seconds):
        clock.advance(1.0)
        sched.pump()


def test_phase_constants() -> None:
    assert PHASE_DURATIONS_S == {BreathPhase.IN: 4, BreathPhase.HOLD: 4, BreathPhase.OUT: 6}
    assert CYCLE_LENGTH_S == 14
    assert next_phase(BreathPhase.IN) is BreathPhase.HOLD
    assert next_phase(BreathPhase.HOLD) is BreathPhase.OUT
    assert next_phase(BreathPhase.OUT) is BreathPhase.IN


def test_full_cycle_returns_to_start() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    cycle = BreathingCycle(scheduler=sched)
    cycle.reset()
    cycle.toggle_running()

    _run(clock, sched, 14)
    assert cycle.phase is BreathPhase.IN
    assert cycle.seconds_left == 4
    assert cycle.running is True


def test_phase_sequence_second_by_second() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    cycle = BreathingCycle(scheduler=sched)
    cycle.start()

    seen = [(cycle.phase, cycle.seconds_left)]
    for _ in range(14):
        _run(clock, sched, 1)
        seen.append((cycle.phase, cycle.seconds_left))

    expected = (
        [(BreathPhase.IN, s) for s in (4, 3, 2, 1)]
        + [(BreathPhase.HOLD, s) for s in (4, 3, 2, 1)]
        + [(BreathPhase.OUT, s) for s in (6, 5, 4, 3, 2, 1)]
        + [(BreathPhase.IN, 4)]
    )
    assert seen == expected
    assert all(left >= 1 for _, left in seen)


def test_runs_indefinitely() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    cycle = BreathingCycle(scheduler=sched)
    cycle.start()

    _run(clock, sched, 14 * 10 + 5)
    assert cycle.running is True
    assert cycle.phase is BreathPhase.HOLD
    assert cycle.seconds_left == 3


def test_toggle_pauses_and_resumes() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    cycle = BreathingCycle(scheduler=sched)

    assert cycle.toggle_running() is True
    _run(clock, sched, 5)
    assert (cycle.phase, cycle.seconds_left) == (BreathPhase.HOLD, 3)

    assert cycle.toggle_running() is False
    assert sched.pending_count() == 0
    _run(clock, sched, 30)
    assert (cycle.phase, cycle.seconds_left) == (BreathPhase.HOLD, 3)

    assert cycle.toggle_running() is True
    _run(clock, sched, 1)
    assert (cycle.phase, cycle.seconds_left) == (BreathPhase.HOLD, 2)


def test_double_start_does_not_double_tick() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    cycle = BreathingCycle(scheduler=sched)
    cycle.start()
    cycle.start()
    assert sched.pending_count() == 1
    _run(clock, sched, 2)
    assert cycle.seconds_left == 2


def test_reset_and_close() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    cycle = BreathingCycle(scheduler=sched)
    cycle.start()
    _run(clock, sched, 9)
    assert cycle.phase is BreathPhase.OUT

    cycle.reset()
    snap = cycle.snapshot()
    assert snap.phase is BreathPhase.IN
    assert snap.seconds_left == 4
    assert snap.running is False
    assert snap.label == "Udah"
    assert sched.pending_count() == 0

    cycle.start()
    cycle.close()
    assert cycle.running is False
    assert sched.pending_count() == 0


def test_phase_change_callback() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    changes: list[BreathPhase] = []
    cycle = BreathingCycle(scheduler=sched, on_phase_change=changes.append)
    cycle.start()
    _run(clock, sched, 14)
    assert changes == [BreathPhase.HOLD, BreathPhase.OUT, BreathPhase.IN]


def test_callback_may_stop_the_cycle() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    holder: list[BreathingCycle] = []
    cycle = BreathingCycle(scheduler=sched, on_phase_change=lambda _p: holder[0].stop())
    holder.append(cycle)
    cycle.start()
    _run(clock, sched, 10)
    assert cycle.running is False
    assert (cycle.phase, cycle.seconds_left) == (BreathPhase.HOLD, 4)
    assert sched.pending_count() == 0
