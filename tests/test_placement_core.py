from __future__ import annotations

import pytest

from assistive_sim.placement import (
    ARCHITECT_MIN_SCORE,
    CORRECT_POINTS,
    INSTRUCTIONS,
    WRONG_PENALTY,
    BadgeTier,
    PlacementOutcome,
    PlacementPuzzle,
    Tool,
    Zone,
    badge_for,
)

TOOLS = (
    Tool("ramp", "Rampa", "", ""),
    Tool("wideDoor", "Šira vrata", "", ""),
    Tool("handrail", "Rukohvat", "", ""),
)
ZONES = (
    Zone("A", "Ulaz", "", "Stepenice na ulazu", "ramp"),
    Zone("B", "Vrata", "", "Uska vrata", "wideDoor"),
    Zone("C", "Stubište", "", "Stepenice bez rukohvata", "handrail"),
)


def _puzzle() -> PlacementPuzzle:
    return PlacementPuzzle(zones=ZONES, tools=TOOLS)


def test_scoring_constants() -> None:
    assert (CORRECT_POINTS, WRONG_PENALTY, ARCHITECT_MIN_SCORE) == (10, 5, 25)


def test_scenario_reaches_architect_badge() -> None:
    p = _puzzle()

    assert p.place("A", "ramp") is PlacementOutcome.CORRECT
    assert p.score == 10
    assert p.place("B", "handrail") is PlacementOutcome.INCORRECT
    assert p.score == 5
    assert p.assignment("B") == "handrail"
    assert p.place("B", "wideDoor") is PlacementOutcome.CORRECT
    assert p.score == 15
    assert p.badge() is BadgeTier.NONE
    assert p.place("C", "handrail") is PlacementOutcome.CORRECT
    assert p.score == 25

    assert p.complete is True
    assert p.completed_count == 3
    assert p.badge() is BadgeTier.ARCHITECT


def test_solved_zone_is_locked() -> None:
    p = _puzzle()
    p.place("A", "ramp")

    for tool_id in ("ramp", "handrail", "ramp"):
        assert p.place("A", tool_id) is PlacementOutcome.ALREADY_SOLVED
        assert p.score == 10
        assert p.assignment("A") == "ramp"
    assert "već" in p.feedback


def test_score_never_negative() -> None:
    p = _puzzle()
    for _ in range(5):
        assert p.place("C", "ramp") is PlacementOutcome.INCORRECT
        assert p.score == 0

    p.place("C", "handrail")
    assert p.score == 10
    p.place("A", "wideDoor")
    p.place("A", "wideDoor")
    p.place("A", "wideDoor")
    assert p.score == 0


def test_low_score_completion_gets_friend_badge() -> None:
    p = _puzzle()
    p.place("A", "handrail")
    p.place("A", "ramp")
    p.place("B", "ramp")
    p.place("B", "wideDoor")
    p.place("C", "ramp")
    p.place("C", "handrail")
    assert p.complete is True
    assert p.score == 20
    assert p.badge() is BadgeTier.FRIEND


def test_badge_rule_is_pure() -> None:
    assert badge_for(complete=False, score=100) is BadgeTier.NONE
    assert badge_for(complete=True, score=24) is BadgeTier.FRIEND
    assert badge_for(complete=True, score=25) is BadgeTier.ARCHITECT
    assert badge_for(complete=True, score=0) is BadgeTier.FRIEND


def test_feedback_names_tool_obstacle_and_hint() -> None:
    p = _puzzle()
    p.place("A", "ramp")
    assert "Rampa" in p.feedback
    assert "stepenice na ulazu" in p.feedback

    p.place("B", "ramp")
    assert "Uska vrata" in p.feedback
    assert "Šira vrata" in p.feedback


def test_click_to_place_flow() -> None:
    p = _puzzle()
    assert p.place_selected("A") is PlacementOutcome.NO_TOOL_SELECTED
    assert p.score == 0
    assert p.assignment("A") is None

    assert p.select_tool("ramp") == "ramp"
    assert p.place_selected("A") is PlacementOutcome.CORRECT
    assert p.select_tool("ramp") is None
    assert p.select_tool("handrail") == "handrail"
    assert p.place_selected("C") is PlacementOutcome.CORRECT
    assert p.score == 20


def test_hold_tool_never_toggles_off() -> None:
    p = _puzzle()
    assert p.hold_tool("ramp") == "ramp"
    assert p.hold_tool("ramp") == "ramp"
    assert p.selected_tool == "ramp"
    assert p.feedback.startswith("Odabran alat: Rampa")

    assert p.select_tool("ramp") is None
    assert p.feedback == INSTRUCTIONS
    with pytest.raises(ValueError):
        p.hold_tool("elevator")


def test_reset_restores_initial_state() -> None:
    p = _puzzle()
    p.select_tool("ramp")
    p.place("A", "ramp")
    p.place("B", "handrail")

    p.reset()
    snap = p.snapshot()
    assert snap.score == 0
    assert snap.completed_count == 0
    assert snap.selected_tool is None
    assert snap.feedback == INSTRUCTIONS
    assert all(v.placed_tool is None and not v.solved for v in snap.zones)
    assert snap.badge is BadgeTier.NONE


def test_unknown_ids_are_rejected() -> None:
    p = _puzzle()
    with pytest.raises(ValueError):
        p.place("Z", "ramp")
    with pytest.raises(ValueError):
        p.place("A", "elevator")
    with pytest.raises(ValueError):
        p.select_tool("elevator")


def test_construction_validates_zone_targets() -> None:
    with pytest.raises(ValueError):
        PlacementPuzzle(zones=(Zone("A", "", "", "", "lift"),), tools=TOOLS)
    with pytest.raises(ValueError):
        PlacementPuzzle(zones=(), tools=TOOLS)


def test_default_school_map() -> None:
    p = PlacementPuzzle()
    snap = p.snapshot()
    assert [v.zone.zone_id for v in snap.zones] == ["entranceStairs", "mainDoor", "stairsHall"]
    for view in snap.zones:
        assert p.place(view.zone.zone_id, view.zone.correct_tool) is PlacementOutcome.CORRECT
    assert p.badge() is BadgeTier.ARCHITECT
