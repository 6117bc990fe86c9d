"""Tests for the session state machine."""

from __future__ import annotations

import pytest
import structlog
from structlog.testing import LogCapture

from memorizer.data_models import Quiz
from memorizer.memorize import (
    AssessmentEvaluator,
    InvalidConfiguration,
    InvalidTransition,
    MemorizeOptions,
    SessionStore,
    ViewMode,
    reduce,
)
from memorizer.memorize.models import (
    BeginAssessment,
    ContinueSession,
    ResetSession,
    StartSession,
    SubmitAssessment,
)
from memorizer.memorize.store import parse_action

from conftest import StepClock, answers_for


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(AssessmentEvaluator(clock=StepClock()))


@pytest.fixture
def log_entries():
    capture = LogCapture()
    structlog.reset_defaults()
    structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
    yield capture.entries
    structlog.reset_defaults()


def test_initial_mode_is_settings_without_session(store):
    assert store.view_mode is ViewMode.SETTINGS
    assert store.session is None


def test_start_initializes_queue_and_empty_ledger(store, seven_question_quiz):
    session = store.dispatch(StartSession(quiz=seven_question_quiz, options=MemorizeOptions(batch_size=5)))

    assert session.view_mode is ViewMode.LEARN
    assert session.current_batch_index == 0
    assert session.ledger == ()
    assert [len(batch) for batch in session.question_queue] == [5, 2]
    assert session.current_batch.question_ids == ("q1", "q2", "q3", "q4", "q5")


def test_submit_in_learn_mode_leaves_state_unchanged(store, seven_question_quiz):
    store.dispatch(StartSession(quiz=seven_question_quiz))
    before = store.session.model_dump()

    with pytest.raises(InvalidTransition):
        store.dispatch(SubmitAssessment(answers=answers_for(["q1"])))

    assert store.session.model_dump() == before
    assert store.view_mode is ViewMode.LEARN


@pytest.mark.parametrize(
    "action",
    [BeginAssessment(), SubmitAssessment(), ContinueSession()],
)
def test_actions_before_start_are_invalid(store, action):
    with pytest.raises(InvalidTransition):
        store.dispatch(action)
    assert store.session is None


def test_start_twice_is_invalid(store, seven_question_quiz):
    store.dispatch(StartSession(quiz=seven_question_quiz))
    with pytest.raises(InvalidTransition):
        store.dispatch(StartSession(quiz=seven_question_quiz))


def test_invalid_configuration_creates_no_session(store, seven_question_quiz):
    with pytest.raises(InvalidConfiguration):
        store.dispatch(StartSession(quiz=seven_question_quiz, options=MemorizeOptions(batch_size=0)))
    assert store.session is None
    assert store.view_mode is ViewMode.SETTINGS


def test_empty_quiz_is_invalid_configuration(store):
    with pytest.raises(InvalidConfiguration):
        store.dispatch(StartSession(quiz=Quiz(id="empty")))
    assert store.session is None


def test_chapter_filter_that_matches_nothing_is_invalid(store, seven_question_quiz):
    with pytest.raises(InvalidConfiguration):
        store.dispatch(
            StartSession(
                quiz=seven_question_quiz,
                options=MemorizeOptions(selected_chapters=("missing",)),
            )
        )


def test_summary_is_terminal_until_reset(store, seven_question_quiz):
    store.dispatch(StartSession(quiz=seven_question_quiz, options=MemorizeOptions(batch_size=7)))
    store.dispatch(BeginAssessment())
    store.dispatch(SubmitAssessment(answers=answers_for(f"q{idx}" for idx in range(1, 8))))
    store.dispatch(ContinueSession())
    assert store.view_mode is ViewMode.SUMMARY

    for action in (BeginAssessment(), SubmitAssessment(), ContinueSession()):
        with pytest.raises(InvalidTransition):
            store.dispatch(action)

    store.dispatch(ResetSession())
    assert store.view_mode is ViewMode.SETTINGS
    assert store.session is None


def test_reduce_does_not_mutate_previous_snapshot(seven_question_quiz):
    evaluator = AssessmentEvaluator(clock=StepClock())
    learning = reduce(None, StartSession(quiz=seven_question_quiz), evaluator)
    assessing = reduce(learning, BeginAssessment(), evaluator)

    assert learning.view_mode is ViewMode.LEARN
    assert assessing.view_mode is ViewMode.ASSESS
    assert assessing is not learning


def test_parse_action_builds_tagged_actions():
    assert isinstance(parse_action({"type": "continue"}), ContinueSession)
    submitted = parse_action({"type": "submit_assessment", "answers": {"q1": "a"}})
    assert isinstance(submitted, SubmitAssessment)
    assert submitted.answers == {"q1": "a"}


def test_results_are_empty_before_start(store):
    assert store.results().total_questions == 0


def test_log_events_carry_quiz_and_batch(store, seven_question_quiz, log_entries):
    store.dispatch(StartSession(quiz=seven_question_quiz, options=MemorizeOptions(batch_size=5)))
    store.dispatch(BeginAssessment())
    store.dispatch(SubmitAssessment(answers=answers_for(["q1", "q2", "q3", "q4", "q5"])))

    by_event = {entry["event"]: entry for entry in log_entries}
    assert by_event["session_started"]["quiz_id"] == "capitals"
    assert by_event["batch_assessed"]["quiz_id"] == "capitals"
    assert by_event["batch_assessed"]["batch_index"] == 0
    assert structlog.contextvars.get_contextvars() == {}
