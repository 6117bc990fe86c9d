from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from memorizer.data_models import Question
from memorizer.grading import AnswerKeyGrader, Grader
from memorizer.memorize.errors import GradingFailure
from memorizer.memorize.models import AttemptRecord, Batch, BatchResult
from memorizer.utils.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AssessmentEvaluator:
    """
    Score a submitted batch and produce the attempts to append to the ledger.

    Correctness always comes from the injected grader. A missing answer is
    scored as wrong, and a grader that raises yields an incorrect attempt
    flagged with the error so the session can keep moving.

    Points follow the grader's `score` method when it has one, so an answer
    can earn partial credit while still counting as incorrect.
    """

    def __init__(self, grader: Optional[Grader] = None, clock: Optional[Clock] = None):
        self.grader = grader or AnswerKeyGrader()
        self.clock = clock or utc_now

    def _credit(self, question: Question, answer: Any, is_correct: bool) -> float:
        if is_correct:
            return question.points
        score = getattr(self.grader, "score", None)
        if score is None or answer is None:
            return 0.0
        return round(float(score(question, answer)) * question.points, 2)

    def evaluate(
        self,
        batch: Batch,
        answers: Mapping[str, Any],
        ledger: Sequence[AttemptRecord] = (),
    ) -> BatchResult:
        prior_attempts = Counter(record.question_id for record in ledger)
        timestamp = self.clock()

        per_question: Dict[str, bool] = {}
        grading_failures: Dict[str, str] = {}
        attempts: List[AttemptRecord] = []
        earned = 0.0
        total = 0.0

        for question in batch.questions:
            answer = answers.get(question.id)
            error: Optional[str] = None
            credit = 0.0
            if answer is None:
                is_correct = False
            else:
                try:
                    is_correct = bool(self.grader.grade(question, answer))
                    credit = self._credit(question, answer, is_correct)
                except Exception as exc:
                    failure = GradingFailure(question.id, exc)
                    logger.warning(
                        "grading_failed",
                        question_id=question.id,
                        batch_index=batch.batch_index,
                        error=str(exc),
                    )
                    is_correct = False
                    error = str(failure)
                    grading_failures[question.id] = error

            per_question[question.id] = is_correct
            total += question.points
            earned += credit
            attempts.append(
                AttemptRecord(
                    question_id=question.id,
                    attempt_number=prior_attempts[question.id] + 1,
                    is_correct=is_correct,
                    timestamp=timestamp,
                    batch_index=batch.batch_index,
                    generation=batch.source_generation,
                    answer=answer,
                    grading_error=error,
                    points=question.points,
                    earned_points=credit,
                )
            )

        return BatchResult(
            batch_index=batch.batch_index,
            generation=batch.source_generation,
            per_question=per_question,
            attempts_appended=tuple(attempts),
            grading_failures=grading_failures,
            earned_points=earned,
            total_points=total,
            chapter_name=batch.chapter_name,
        )
