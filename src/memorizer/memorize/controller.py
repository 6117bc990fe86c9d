from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from memorizer.data_models import Quiz
from memorizer.memorize.errors import InvalidTransition
from memorizer.memorize.models import (
    Action,
    Batch,
    BatchResult,
    BeginAssessment,
    ContinueSession,
    CumulativeResults,
    MemorizeOptions,
    ResetSession,
    StartSession,
    SubmitAssessment,
    ViewMode,
)
from memorizer.memorize.store import SessionStore


class QuizLoader(Protocol):
    async def load_quiz(self, quiz_id: str) -> Quiz: ...


class FlowController:
    """
    UI-facing facade over the session store.

    Every method dispatches exactly one action and reports the resulting view
    mode. The controller keeps no session state of its own, so any UI binding
    can wrap it.

    Parameters
    ----------
    store : SessionStore
        Store that owns the session snapshot.
    ignore_invalid_transitions : bool, default=False
        When True an out-of-order call is logged (by the store) and the current
        view mode is returned instead of raising `InvalidTransition`.
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        *,
        ignore_invalid_transitions: bool = False,
    ):
        self.store = store or SessionStore()
        self.ignore_invalid_transitions = ignore_invalid_transitions

    def _dispatch(self, action: Action) -> ViewMode:
        try:
            self.store.dispatch(action)
        except InvalidTransition:
            if not self.ignore_invalid_transitions:
                raise
        return self.store.view_mode

    def start(self, quiz: Quiz, options: Optional[MemorizeOptions] = None) -> ViewMode:
        return self._dispatch(StartSession(quiz=quiz, options=options or MemorizeOptions()))

    async def start_from_loader(
        self,
        loader: QuizLoader,
        quiz_id: str,
        options: Optional[MemorizeOptions] = None,
    ) -> ViewMode:
        """Await the quiz loader once, then start; load failures propagate unchanged."""
        quiz = await loader.load_quiz(quiz_id)
        return self.start(quiz, options)

    def complete_learn_phase(self) -> ViewMode:
        return self._dispatch(BeginAssessment())

    def submit_assessment(self, answers: Mapping[str, Any]) -> ViewMode:
        return self._dispatch(SubmitAssessment(answers=dict(answers)))

    def advance(self) -> ViewMode:
        return self._dispatch(ContinueSession())

    def reset(self) -> ViewMode:
        return self._dispatch(ResetSession())

    @property
    def view_mode(self) -> ViewMode:
        return self.store.view_mode

    @property
    def current_batch(self) -> Optional[Batch]:
        session = self.store.session
        if session is None or session.view_mode is ViewMode.SUMMARY:
            return None
        return session.current_batch

    @property
    def last_result(self) -> Optional[BatchResult]:
        session = self.store.session
        return session.last_result if session is not None else None

    def results(self) -> CumulativeResults:
        return self.store.results()
