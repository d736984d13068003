from __future__ import annotations

import pytest

from assistive_sim.quiz import SITUATIONS_QUIZ, QuizEngine, QuizQuestion


def test_second_pick_is_a_no_op() -> None:
    quiz = QuizEngine()
    q = quiz.current()
    assert q is not None
    wrong = (q.correct_index + 1) % len(q.options)

    assert quiz.pick(wrong) is True
    assert quiz.pick(q.correct_index) is False
    assert quiz.picked_index == wrong
    assert quiz.score == 0


def test_all_correct_scores_total() -> None:
    quiz = QuizEngine()
    while not quiz.finished:
        q = quiz.current()
        assert q is not None
        quiz.pick(q.correct_index)
        quiz.advance()
    assert quiz.score == quiz.total == len(SITUATIONS_QUIZ)


def test_correct_incorrect_correct_is_two_of_three() -> None:
    quiz = QuizEngine()
    answers = []
    for i, q in enumerate(SITUATIONS_QUIZ):
        answers.append(q.correct_index if i != 1 else (q.correct_index + 1) % len(q.options))

    for a in answers:
        quiz.pick(a)
        quiz.advance()

    snap = quiz.snapshot()
    assert snap.finished is True
    assert snap.question is None
    assert (snap.score, snap.total) == (2, 3)


def test_feedback_after_pick() -> None:
    quiz = QuizEngine()
    assert quiz.snapshot().feedback is None
    quiz.pick(1)
    assert quiz.snapshot().feedback == "✅ Točno! Ponudi izbor i podršku (pauza / novi plan)."

    quiz.advance()
    quiz.pick(0)
    assert quiz.snapshot().feedback == "❌ Nije točno. Jasna poruka + izlazna strategija."


def test_advance_clears_pick_and_results_are_terminal() -> None:
    quiz = QuizEngine()
    assert quiz.can_advance is False
    quiz.pick(0)
    assert quiz.can_advance is True
    assert quiz.advance() is True
    assert quiz.picked_index is None
    assert quiz.question_index == 1

    quiz.advance()
    quiz.advance()
    assert quiz.finished is True
    assert quiz.advance() is False
    assert quiz.pick(0) is False
    assert quiz.question_index == 3


def test_reset() -> None:
    quiz = QuizEngine()
    quiz.pick(1)
    quiz.advance()
    quiz.pick(1)
    quiz.reset()
    assert (quiz.question_index, quiz.picked_index, quiz.score) == (0, None, 0)


def test_out_of_range_pick_raises() -> None:
    quiz = QuizEngine()
    with pytest.raises(ValueError):
        quiz.pick(3)
    with pytest.raises(ValueError):
        quiz.pick(-1)
    assert quiz.picked_index is None


def test_question_validation() -> None:
    with pytest.raises(ValueError):
        QuizEngine(())
    with pytest.raises(ValueError):
        QuizEngine((QuizQuestion("?", ("a", "b"), 2),))
