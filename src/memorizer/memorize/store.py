"""
Session state machine.

`reduce` is the single mutation function: it takes the current snapshot and an
action and returns the next snapshot, raising `InvalidTransition` when the
action does not fit the current view mode. `SessionStore` owns the live
snapshot and serialises dispatches.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from pydantic import TypeAdapter

from memorizer.data_models import Question, Quiz
from memorizer.memorize.aggregator import aggregate
from memorizer.memorize.batches import build_batches, filter_questions, make_batch, validate_options
from memorizer.memorize.errors import InvalidConfiguration, InvalidTransition
from memorizer.memorize.evaluator import AssessmentEvaluator
from memorizer.memorize.models import (
    Action,
    BeginAssessment,
    ContinueSession,
    CumulativeResults,
    MemorizeOptions,
    ResetSession,
    Session,
    StartSession,
    SubmitAssessment,
    ViewMode,
)
from memorizer.utils.logging import get_logger

logger = get_logger(__name__)

_ACTION_ADAPTER: TypeAdapter = TypeAdapter(Action)


def parse_action(payload: Dict[str, Any]) -> Action:
    """Validate a raw `{"type": ..., ...}` payload into an action model."""
    return _ACTION_ADAPTER.validate_python(payload)


def view_mode_of(session: Optional[Session]) -> ViewMode:
    return session.view_mode if session is not None else ViewMode.SETTINGS


def _require(session: Optional[Session], expected: ViewMode, action: str) -> Session:
    mode = view_mode_of(session)
    if session is None or mode is not expected:
        raise InvalidTransition(action, mode.value)
    return session


def _start(quiz: Quiz, options: MemorizeOptions) -> Session:
    validate_options(options)
    questions = filter_questions(quiz.questions, options.selected_chapters)
    if not questions:
        raise InvalidConfiguration(f"quiz '{quiz.id}' has no questions to memorize")
    batches = build_batches(questions, options, chapters=quiz.chapters)
    logger.info(
        "session_started",
        questions=len(questions),
        batches=len(batches),
        batch_size=options.batch_size,
    )
    return Session(
        quiz_id=quiz.id,
        options=options,
        questions=questions,
        chapters=quiz.chapters,
        question_queue=batches,
        batch_history=batches,
        current_batch_index=batches[0].batch_index,
        next_batch_index=len(batches),
        view_mode=ViewMode.LEARN,
    )


def _submit(session: Session, answers: Dict[str, Any], evaluator: AssessmentEvaluator) -> Session:
    batch = session.current_batch
    assert batch is not None
    result = evaluator.evaluate(batch, answers, session.ledger)
    logger.info(
        "batch_assessed",
        batch_index=batch.batch_index,
        generation=batch.source_generation,
        correct=result.correct_count,
        total=result.total_questions,
    )
    return session.model_copy(
        update={
            "ledger": session.ledger + result.attempts_appended,
            "last_result": result,
            "view_mode": ViewMode.BATCH_RESULTS,
        }
    )


def _in_original_order(session: Session, question_ids: Iterable[str]) -> Tuple[Question, ...]:
    wanted = set(question_ids)
    return tuple(question for question in session.questions if question.id in wanted)


def _advance(session: Session) -> Session:
    """Pick the next batch: an immediate retry, the next pending batch, a pooled retry pass, or the summary."""
    result = session.last_result
    current = session.current_batch
    assert result is not None and current is not None

    options = session.options
    remaining = session.question_queue[1:]
    deferred: List[str] = list(session.deferred_question_ids)
    next_index = session.next_batch_index
    retry_pass = session.retry_pass
    created: Tuple = ()

    failed = _in_original_order(session, result.failed_question_ids)
    if failed and options.requeue_failed_immediately:
        retry = make_batch(
            failed,
            options,
            batch_index=next_index,
            generation=current.source_generation + 1,
            chapter_name=current.chapter_name,
        )
        next_index += 1
        created = (retry,)
        remaining = created + remaining
        logger.info(
            "batch_requeued",
            batch_index=retry.batch_index,
            generation=retry.source_generation,
            questions=len(retry),
        )
    elif failed:
        deferred.extend(question.id for question in failed if question.id not in deferred)

    if not remaining and deferred:
        retry_pass += 1
        created = build_batches(
            _in_original_order(session, deferred),
            options,
            chapters=session.chapters,
            start_index=next_index,
            generation=retry_pass,
        )
        next_index += len(created)
        remaining = created
        deferred = []
        logger.info(
            "retry_pass_started",
            retry_pass=retry_pass,
            batches=len(created),
        )

    update: Dict[str, Any] = {
        "question_queue": remaining,
        "batch_history": session.batch_history + created,
        "next_batch_index": next_index,
        "deferred_question_ids": tuple(deferred),
        "retry_pass": retry_pass,
    }
    if remaining:
        update["current_batch_index"] = remaining[0].batch_index
        update["view_mode"] = ViewMode.LEARN
        return session.model_copy(update=update)

    update["view_mode"] = ViewMode.SUMMARY
    finished = session.model_copy(update=update)
    results = aggregate(finished.ledger, finished.question_ids)
    logger.info(
        "session_finished",
        mastered=results.mastered_count,
        first_try_correct=results.first_try_correct_count,
        attempts=results.total_attempts,
        overall_percentage=round(results.overall_percentage, 1),
    )
    return finished


def reduce(
    session: Optional[Session],
    action: Action,
    evaluator: AssessmentEvaluator,
) -> Optional[Session]:
    """
    Apply one action to a snapshot and return the next snapshot.

    `None` stands for the settings screen: no session exists until `start`
    succeeds, and `reset` returns there from any mode.
    """
    if isinstance(action, ResetSession):
        return None
    if isinstance(action, StartSession):
        if session is not None:
            raise InvalidTransition(action.type, session.view_mode.value)
        return _start(action.quiz, action.options)
    if isinstance(action, BeginAssessment):
        current = _require(session, ViewMode.LEARN, action.type)
        return current.model_copy(update={"view_mode": ViewMode.ASSESS})
    if isinstance(action, SubmitAssessment):
        current = _require(session, ViewMode.ASSESS, action.type)
        return _submit(current, action.answers, evaluator)
    if isinstance(action, ContinueSession):
        current = _require(session, ViewMode.BATCH_RESULTS, action.type)
        return _advance(current)
    raise TypeError(f"Unsupported action: {action!r}")


class SessionStore:
    """Sole owner of the live session snapshot."""

    def __init__(self, evaluator: Optional[AssessmentEvaluator] = None):
        self.evaluator = evaluator or AssessmentEvaluator()
        self._session: Optional[Session] = None
        self._lock = threading.Lock()

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def view_mode(self) -> ViewMode:
        return view_mode_of(self._session)

    def _log_context(self, action: Action) -> Dict[str, Any]:
        session = self._session
        if session is not None:
            return {"quiz_id": session.quiz_id, "batch_index": session.current_batch_index}
        if isinstance(action, StartSession):
            return {"quiz_id": action.quiz.id}
        return {}

    def dispatch(self, action: Action) -> Optional[Session]:
        """Apply one action under the store lock; log lines emitted meanwhile carry the quiz and batch."""
        with self._lock, structlog.contextvars.bound_contextvars(**self._log_context(action)):
            try:
                self._session = reduce(self._session, action, self.evaluator)
            except InvalidTransition as exc:
                logger.warning(
                    "invalid_transition",
                    action=exc.action,
                    view_mode=exc.view_mode,
                )
                raise
            return self._session

    def results(self) -> CumulativeResults:
        session = self._session
        if session is None:
            return CumulativeResults()
        return aggregate(session.ledger, session.question_ids)
