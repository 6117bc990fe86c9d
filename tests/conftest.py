"""Shared fixtures for memorization engine tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List

import pytest

from memorizer.data_models import Choice, Question, Quiz
from memorizer.memorize import AssessmentEvaluator, FlowController, SessionStore


def make_question(question_id: str, chapter: str | None = None) -> Question:
    """Multiple-choice question whose correct choice id is always 'a'."""
    return Question(
        id=question_id,
        text=f"Question {question_id}?",
        type="multiple_choice",
        choices=[
            Choice(id="a", text="Right", correct=True),
            Choice(id="b", text="Wrong"),
        ],
        chapter=chapter,
    )


def answers_for(question_ids: Iterable[str], wrong: Iterable[str] = ()) -> Dict[str, str]:
    """Correct answers for every id, except those listed in `wrong`."""
    wrong_ids = set(wrong)
    return {qid: ("b" if qid in wrong_ids else "a") for qid in question_ids}


class StepClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
        self.calls = 0

    def __call__(self) -> datetime:
        value = self.current + timedelta(minutes=self.calls)
        self.calls += 1
        return value


@pytest.fixture
def questions() -> List[Question]:
    return [make_question(f"q{idx}") for idx in range(1, 8)]


@pytest.fixture
def seven_question_quiz(questions) -> Quiz:
    return Quiz(id="capitals", title="World Capitals", questions=questions)


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def controller(clock) -> FlowController:
    return FlowController(SessionStore(AssessmentEvaluator(clock=clock)))
