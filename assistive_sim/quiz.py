from __future__ import annotations

from dataclasses import dataclass

CORRECT_FEEDBACK = "✅ Točno!"
WRONG_FEEDBACK = "❌ Nije točno."


@dataclass(frozen=True, slots=True)
class QuizQuestion:
    prompt: str
    options: tuple[str, ...]
    correct_index: int
    hint: str = ""


@dataclass(frozen=True, slots=True)
class QuizSnapshot:
    """View model for the UI (pure data)."""

    finished: bool
    question_index: int
    total: int
    question: QuizQuestion | None
    picked_index: int | None
    score: int
    feedback: str | None


SITUATIONS_QUIZ: tuple[QuizQuestion, ...] = (
    QuizQuestion(
        prompt="Prijatelj je uznemiren jer se plan promijenio. Što je najbolje?",
        options=(
            "Reći: “Nije ništa” i ignorirati",
            "Pitati: “Želiš pauzu ili novi plan?”",
            "Smijati se jer je nervozan",
        ),
        correct_index=1,
        hint="Ponudi izbor i podršku (pauza / novi plan).",
    ),
    QuizQuestion(
        prompt="U učionici je preglasno. Koja opcija je najprikladnija?",
        options=("Pojačati zvuk", "Trebam pauzu / tiše mjesto", "Ostati bez riječi i trpjeti"),
        correct_index=1,
        hint="Jasna poruka + izlazna strategija.",
    ),
    QuizQuestion(
        prompt="Netko govori prebrzo. Što možeš reći?",
        options=("Možeš ponoviti sporije?", "Ne zanima me", "Šutjeti"),
        correct_index=0,
        hint="Traži ponavljanje sporije.",
    ),
)


class QuizEngine:
    """Linear multiple-choice quiz: first pick per question is locked in."""

    def __init__(self, questions: tuple[QuizQuestion, ...] = SITUATIONS_QUIZ) -> None:
        if not questions:
            raise ValueError("questions must not be empty")
        for q in questions:
            if not (0 <= q.correct_index < len(q.options)):
                raise ValueError(f"correct_index out of range for {q.prompt!r}")
        self._questions = tuple(questions)
        self._index = 0
        self._picked: int | None = None
        self._score = 0

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def score(self) -> int:
        return self._score

    @property
    def question_index(self) -> int:
        return self._index

    @property
    def picked_index(self) -> int | None:
        return self._picked

    @property
    def finished(self) -> bool:
        return self._index >= len(self._questions)

    @property
    def can_advance(self) -> bool:
        return not self.finished and self._picked is not None

    def current(self) -> QuizQuestion | None:
        if self.finished:
            return None
        return self._questions[self._index]

    def pick(self, option_index: int) -> bool:
        """Lock in an answer for the active question. Returns True if accepted."""

        question = self.current()
        if question is None or self._picked is not None:
            return False
        if not (0 <= option_index < len(question.options)):
            raise ValueError(f"option_index out of range: {option_index}")
        self._picked = int(option_index)
        if self._picked == question.correct_index:
            self._score += 1
        return True

    def advance(self) -> bool:
        if self.finished:
            return False
        self._picked = None
        self._index += 1
        return True

    def reset(self) -> None:
        self._index = 0
        self._picked = None
        self._score = 0

    def snapshot(self) -> QuizSnapshot:
        question = self.current()
        feedback: str | None = None
        if question is not None and self._picked is not None:
            mark = CORRECT_FEEDBACK if self._picked == question.correct_index else WRONG_FEEDBACK
            feedback = f"{mark} {question.hint}".strip()
        return QuizSnapshot(
            finished=self.finished,
            question_index=self._index,
            total=len(self._questions),
            question=question,
            picked_index=self._picked,
            score=self._score,
            feedback=feedback,
        )
