from __future__ import annotations

from dataclasses import dataclass

import pytest

from assistive_sim.clock import Scheduler


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def test_callback_fires_only_once_due() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    fired: list[str] = []

    sched.call_later(1.0, lambda: fired.append("a"))
    clock.advance(0.99)
    assert sched.pump() == 0
    assert fired == []

    clock.advance(0.01)
    assert sched.pump() == 1
    assert fired == ["a"]

    clock.advance(5.0)
    assert sched.pump() == 0
    assert fired == ["a"]


def test_cancelled_handle_never_fires() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    fired: list[int] = []

    handle = sched.call_later(1.0, lambda: fired.append(1))
    assert handle.pending is True
    handle.cancel()
    assert handle.pending is False
    assert sched.pending_count() == 0

    clock.advance(2.0)
    sched.pump()
    assert fired == []


def test_self_rescheduling_catches_up_after_stall() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    seen: list[float] = []

    def tick() -> None:
        seen.append(sched.now())
        sched.call_later(1.0, tick)

    sched.call_later(1.0, tick)
    clock.advance(5.0)
    assert sched.pump() == 5
    assert seen == [1.0, 2.0, 3.0, 4.0, 5.0]
    assert sched.pending_count() == 1


def test_callbacks_fire_in_due_order() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    order: list[str] = []

    sched.call_later(2.0, lambda: order.append("late"))
    sched.call_later(1.0, lambda: order.append("early"))
    sched.call_later(1.0, lambda: order.append("early-2"))
    clock.advance(3.0)
    sched.pump()
    assert order == ["early", "early-2", "late"]


def test_negative_delay_is_rejected() -> None:
    sched = Scheduler(FakeClock())
    with pytest.raises(ValueError):
        sched.call_later(-0.5, lambda: None)


def test_clear_cancels_everything() -> None:
    clock = FakeClock()
    sched = Scheduler(clock)
    fired: list[int] = []
    handles = [sched.call_later(float(i), lambda: fired.append(1)) for i in range(1, 4)]

    sched.clear()
    clock.advance(10.0)
    sched.pump()
    assert fired == []
    assert all(not h.pending for h in handles)
