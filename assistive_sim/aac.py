from __future__ import annotations

from dataclasses import dataclass

from .cues import SILENT, CueBoard

INITIAL_MESSAGE = "Klikni karticu"


@dataclass(frozen=True, slots=True)
class AacCard:
    card_id: str
    label: str
    speak: str


DEFAULT_CARDS: tuple[AacCard, ...] = (
    AacCard("c1", "Trebam pauzu", "Trebam pauzu."),
    AacCard("c2", "Previše je glasno", "Previše je glasno."),
    AacCard("c3", "Ne razumijem", "Ne razumijem."),
    AacCard("c4", "Možeš ponoviti?", "Možeš ponoviti?"),
    AacCard("c5", "Želim mir", "Želim mir."),
    AacCard("c6", "Može raspored?", "Može raspored?"),
    AacCard("c7", "Molim vodu", "Molim vodu."),
    AacCard("c8", "Hvala", "Hvala."),
)


class AacBoard:
    """Quick-communication cards: pressing one shows (and optionally speaks) its phrase."""

    def __init__(self, *, cards: tuple[AacCard, ...] = DEFAULT_CARDS, cues: CueBoard = SILENT) -> None:
        self._cards = {c.card_id: c for c in cards}
        self._order = tuple(c.card_id for c in cards)
        self._cues = cues
        self._message = INITIAL_MESSAGE

    @property
    def message(self) -> str:
        return self._message

    def cards(self) -> tuple[AacCard, ...]:
        return tuple(self._cards[cid] for cid in self._order)

    def press(self, card_id: str) -> AacCard:
        card = self._cards.get(card_id)
        if card is None:
            raise ValueError(f"unknown card: {card_id!r}")
        self._message = card.speak
        self._cues.speak(card.speak)
        return card
