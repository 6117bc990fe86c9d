"""Tests for scoring an assessed batch."""

from __future__ import annotations

from memorizer.data_models import Choice, Question
from memorizer.memorize import AssessmentEvaluator, Batch

from conftest import StepClock, answers_for, make_question


class ExplodingGrader:
    """Grader that fails for one question id and defers to the answer key otherwise."""

    def __init__(self, broken_id: str):
        self.broken_id = broken_id

    def grade(self, question: Question, answer) -> bool:
        if question.id == self.broken_id:
            raise RuntimeError("grader offline")
        return answer == "a"


def _batch(*ids: str, generation: int = 0, index: int = 0) -> Batch:
    return Batch(
        questions=[make_question(qid) for qid in ids],
        batch_index=index,
        source_generation=generation,
    )


def test_one_attempt_per_question_with_missing_answers_wrong():
    evaluator = AssessmentEvaluator(clock=StepClock())
    batch = _batch("q1", "q2", "q3")

    result = evaluator.evaluate(batch, {"q1": "a", "q2": "b"})

    assert result.per_question == {"q1": True, "q2": False, "q3": False}
    assert [record.question_id for record in result.attempts_appended] == ["q1", "q2", "q3"]
    assert all(record.attempt_number == 1 for record in result.attempts_appended)
    assert result.failed_question_ids == ("q2", "q3")
    assert result.correct_count == 1
    assert result.grading_failures == {}


def test_attempt_numbers_continue_from_prior_ledger():
    evaluator = AssessmentEvaluator(clock=StepClock())
    first = evaluator.evaluate(_batch("q1", "q2"), answers_for(["q1", "q2"], wrong=["q1", "q2"]))
    second = evaluator.evaluate(
        _batch("q1", "q2", index=1, generation=1),
        answers_for(["q1", "q2"], wrong=["q2"]),
        first.attempts_appended,
    )
    assert [record.attempt_number for record in second.attempts_appended] == [2, 2]
    assert all(record.generation == 1 for record in second.attempts_appended)
    assert all(record.batch_index == 1 for record in second.attempts_appended)


def test_grading_failure_is_recorded_as_incorrect_attempt():
    evaluator = AssessmentEvaluator(grader=ExplodingGrader("q2"), clock=StepClock())
    result = evaluator.evaluate(_batch("q1", "q2", "q3"), answers_for(["q1", "q2", "q3"]))

    assert result.per_question == {"q1": True, "q2": False, "q3": True}
    assert "q2" in result.grading_failures
    assert "grader offline" in result.grading_failures["q2"]
    broken = result.attempts_appended[1]
    assert broken.is_correct is False
    assert broken.grading_error is not None


def test_points_and_percentage():
    evaluator = AssessmentEvaluator(clock=StepClock())
    heavy = make_question("q1").model_copy(update={"points": 3.0})
    batch = Batch(questions=[heavy, make_question("q2")], batch_index=0)

    result = evaluator.evaluate(batch, {"q1": "a", "q2": "b"})

    assert result.earned_points == 3.0
    assert result.total_points == 4.0
    assert result.percentage == 75.0


def test_evaluation_is_deterministic_for_same_inputs():
    batch = _batch("q1", "q2")
    answers = {"q1": "a", "q2": "b"}
    first = AssessmentEvaluator(clock=StepClock()).evaluate(batch, answers)
    second = AssessmentEvaluator(clock=StepClock()).evaluate(batch, answers)
    assert first == second


def test_partial_credit_is_scored_but_answer_stays_wrong():
    """Picking one of two correct choices earns half the points and still needs a retry."""
    question = Question(
        id="primes",
        text="Pick the primes",
        type="multiple_answer",
        points=2.0,
        choices=[
            Choice(id="a", text="2", correct=True),
            Choice(id="b", text="3", correct=True),
            Choice(id="c", text="4"),
        ],
    )
    batch = Batch(questions=[question, make_question("q2")], batch_index=0)

    result = AssessmentEvaluator(clock=StepClock()).evaluate(batch, {"primes": ["a"], "q2": "a"})

    assert result.per_question == {"primes": False, "q2": True}
    assert result.earned_points == 2.0
    assert result.total_points == 3.0
    record = result.attempts_appended[0]
    assert record.points == 2.0
    assert record.earned_points == 1.0


def test_graders_without_score_are_all_or_nothing():
    evaluator = AssessmentEvaluator(grader=ExplodingGrader("none"), clock=StepClock())
    result = evaluator.evaluate(_batch("q1", "q2"), {"q1": "a", "q2": "b"})
    assert [record.earned_points for record in result.attempts_appended] == [1.0, 0.0]
