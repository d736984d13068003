from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

logger = logging.getLogger(__name__)

CORRECT_POINTS = 10
WRONG_PENALTY = 5
ARCHITECT_MIN_SCORE = 25

INSTRUCTIONS = "Odaberi alat i postavi ga na pravo mjesto (drag&drop ili klikom)."


@dataclass(frozen=True, slots=True)
class Tool:
    tool_id: str
    name: str
    emoji: str
    description: str


@dataclass(frozen=True, slots=True)
class Zone:
    zone_id: str
    title: str
    obstacle_emoji: str
    obstacle: str
    correct_tool: str


class PlacementOutcome(StrEnum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    ALREADY_SOLVED = "already_solved"
    NO_TOOL_SELECTED = "no_tool_selected"


class BadgeTier(StrEnum):
    NONE = "none"
    FRIEND = "friend"
    ARCHITECT = "architect"


BADGE_TEXT: dict[BadgeTier, str] = {
    BadgeTier.FRIEND: "🏅 Značka: Prijatelj pristupačnosti",
    BadgeTier.ARCHITECT: "🏅 Značka: Arhitekt pristupačnosti",
}


def badge_for(*, complete: bool, score: int) -> BadgeTier:
    if not complete:
        return BadgeTier.NONE
    return BadgeTier.ARCHITECT if score >= ARCHITECT_MIN_SCORE else BadgeTier.FRIEND


@dataclass(frozen=True, slots=True)
class ZoneView:
    zone: Zone
    placed_tool: Tool | None
    solved: bool


@dataclass(frozen=True, slots=True)
class PlacementSnapshot:
    """View model for the UI (pure data)."""

    zones: tuple[ZoneView, ...]
    tools: tuple[Tool, ...]
    selected_tool: str | None
    score: int
    completed_count: int
    total_zones: int
    complete: bool
    badge: BadgeTier
    feedback: str


SCHOOL_TOOLS: tuple[Tool, ...] = (
    Tool("ramp", "Rampa", "🛝", "Pomaže kad postoje stepenice – omogućuje pristupačan ulaz."),
    Tool("wideDoor", "Šira vrata", "🚪", "Olakšava prolaz kolicima, hodalicama i svima s većim torbama."),
    Tool("handrail", "Rukohvat", "🤚", "Pruža oslonac na stepenicama i u hodnicima – sigurnije kretanje."),
)

SCHOOL_ZONES: tuple[Zone, ...] = (
    Zone("entranceStairs", "Ulaz škole", "🧱", "Stepenice na ulazu", "ramp"),
    Zone("mainDoor", "Glavni ulaz", "🚪", "Uska vrata", "wideDoor"),
    Zone("stairsHall", "Stubište", "🪜", "Stepenice bez rukohvata", "handrail"),
)


class PlacementPuzzle:
    """Place tools on zones; each zone has exactly one correct tool.

    A zone that holds its correct tool is locked for the rest of the session.
    Score never drops below zero.
    """

    def __init__(
        self,
        *,
        zones: tuple[Zone, ...] = SCHOOL_ZONES,
        tools: tuple[Tool, ...] = SCHOOL_TOOLS,
    ) -> None:
        if not zones:
            raise ValueError("zones must not be empty")
        self._tools = {t.tool_id: t for t in tools}
        if len(self._tools) != len(tools):
            raise ValueError("tool ids must be unique")
        self._zones = {z.zone_id: z for z in zones}
        if len(self._zones) != len(zones):
            raise ValueError("zone ids must be unique")
        for zone in zones:
            if zone.correct_tool not in self._tools:
                raise ValueError(f"zone {zone.zone_id} refers to unknown tool {zone.correct_tool}")
        self._zone_order = tuple(z.zone_id for z in zones)
        self._tool_order = tuple(t.tool_id for t in tools)

        self._placed: dict[str, str | None] = {}
        self._selected: str | None = None
        self._score = 0
        self._feedback = INSTRUCTIONS
        self.reset()

    @property
    def score(self) -> int:
        return self._score

    @property
    def feedback(self) -> str:
        return self._feedback

    @property
    def selected_tool(self) -> str | None:
        return self._selected

    def assignment(self, zone_id: str) -> str | None:
        self._zone(zone_id)
        return self._placed[zone_id]

    def is_solved(self, zone_id: str) -> bool:
        zone = self._zone(zone_id)
        return self._placed[zone_id] == zone.correct_tool

    @property
    def completed_count(self) -> int:
        return sum(1 for zid in self._zone_order if self.is_solved(zid))

    @property
    def complete(self) -> bool:
        return self.completed_count == len(self._zone_order)

    def badge(self) -> BadgeTier:
        return badge_for(complete=self.complete, score=self._score)

    def place(self, zone_id: str, tool_id: str) -> PlacementOutcome:
        zone = self._zone(zone_id)
        tool = self._tool(tool_id)

        if self._placed[zone_id] == zone.correct_tool:
            self._feedback = "✅ Ovo je već odlično postavljeno. Probaj riješiti i ostala mjesta."
            return PlacementOutcome.ALREADY_SOLVED

        self._placed[zone_id] = tool.tool_id

        if tool.tool_id == zone.correct_tool:
            self._score += CORRECT_POINTS
            self._feedback = f"✅ Bravo! {tool.name} pomaže za: {zone.obstacle.lower()}."
            outcome = PlacementOutcome.CORRECT
        else:
            self._score = max(0, self._score - WRONG_PENALTY)
            hint = self._tools[zone.correct_tool]
            self._feedback = (
                f'➖ To nije najbolje rješenje za "{zone.obstacle}". Pokušaj s: {hint.name} {hint.emoji}'
            )
            outcome = PlacementOutcome.INCORRECT

        logger.debug(
            "placed %s on %s: %s (score=%d, solved=%d/%d)",
            tool_id,
            zone_id,
            outcome.value,
            self._score,
            self.completed_count,
            len(self._zone_order),
        )
        return outcome

    def select_tool(self, tool_id: str) -> str | None:
        """Toggle the tool used by place_selected(). Returns the new selection."""

        if self._selected == tool_id:
            self._tool(tool_id)
            self._selected = None
            self._feedback = INSTRUCTIONS
            return None
        return self.hold_tool(tool_id)

    def hold_tool(self, tool_id: str) -> str:
        """Select a tool without toggling (start of a drag)."""

        tool = self._tool(tool_id)
        self._selected = tool_id
        self._feedback = f"Odabran alat: {tool.name} {tool.emoji}. Klikni mjesto na tlocrtu da ga postaviš."
        return tool_id

    def place_selected(self, zone_id: str) -> PlacementOutcome:
        self._zone(zone_id)
        if self._selected is None:
            self._feedback = "Prvo odaberi alat iz kutije."
            return PlacementOutcome.NO_TOOL_SELECTED
        return self.place(zone_id, self._selected)

    def reset(self) -> None:
        self._placed = {zid: None for zid in self._zone_order}
        self._selected = None
        self._score = 0
        self._feedback = INSTRUCTIONS

    def snapshot(self) -> PlacementSnapshot:
        views = []
        for zid in self._zone_order:
            placed = self._placed[zid]
            views.append(
                ZoneView(
                    zone=self._zones[zid],
                    placed_tool=None if placed is None else self._tools[placed],
                    solved=self.is_solved(zid),
                )
            )
        return PlacementSnapshot(
            zones=tuple(views),
            tools=tuple(self._tools[tid] for tid in self._tool_order),
            selected_tool=self._selected,
            score=self._score,
            completed_count=self.completed_count,
            total_zones=len(self._zone_order),
            complete=self.complete,
            badge=self.badge(),
            feedback=self._feedback,
        )

    def _zone(self, zone_id: str) -> Zone:
        try:
            return self._zones[zone_id]
        except KeyError:
            raise ValueError(f"unknown zone: {zone_id!r}") from None

    def _tool(self, tool_id: str) -> Tool:
        try:
            return self._tools[tool_id]
        except KeyError:
            raise ValueError(f"unknown tool: {tool_id!r}") from None
