from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from memorizer.data_models import Chapter, Question, Quiz


class ViewMode(str, Enum):
    """Phases of a memorization session, in the order a batch visits them."""

    SETTINGS = "settings"
    LEARN = "learn"
    ASSESS = "assess"
    BATCH_RESULTS = "batch_results"
    SUMMARY = "summary"


class MemorizeOptions(BaseModel):
    """
    Session configuration chosen on the settings screen.

    `batch_size` is validated by the batch builder rather than here so that a
    bad value surfaces as `InvalidConfiguration` when the session starts.
    With `batch_by_chapter` every chapter becomes one batch, in the quiz's
    chapter order; `batch_size` then only applies to quizzes without chapters.
    """

    model_config = ConfigDict(frozen=True)

    batch_size: int = 5
    requeue_failed_immediately: bool = True
    shuffle_within_batch: bool = False
    seed: Optional[int] = None
    selected_chapters: Tuple[str, ...] = ()
    batch_by_chapter: bool = False


class AttemptRecord(BaseModel):
    """One graded answer to one question; the ledger only ever grows."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    attempt_number: int = Field(ge=1)
    is_correct: bool
    timestamp: datetime
    batch_index: int = 0
    generation: int = 0
    answer: Any = None
    grading_error: Optional[str] = None
    points: float = 1.0
    earned_points: float = 0.0


class Batch(BaseModel):
    """Fixed group of questions studied and assessed together."""

    model_config = ConfigDict(frozen=True)

    questions: Tuple[Question, ...]
    batch_index: int = Field(ge=0)
    source_generation: int = Field(0, ge=0)
    chapter_name: Optional[str] = None

    @property
    def question_ids(self) -> Tuple[str, ...]:
        return tuple(question.id for question in self.questions)

    def __len__(self) -> int:
        return len(self.questions)


class BatchResult(BaseModel):
    """Outcome of assessing a single batch."""

    model_config = ConfigDict(frozen=True)

    batch_index: int
    generation: int = 0
    per_question: Dict[str, bool]
    attempts_appended: Tuple[AttemptRecord, ...]
    grading_failures: Dict[str, str] = Field(default_factory=dict)
    earned_points: float = 0.0
    total_points: float = 0.0
    chapter_name: Optional[str] = None

    @property
    def correct_count(self) -> int:
        return sum(1 for is_correct in self.per_question.values() if is_correct)

    @property
    def total_questions(self) -> int:
        return len(self.per_question)

    @property
    def percentage(self) -> float:
        if self.total_points <= 0:
            return 0.0
        return self.earned_points / self.total_points * 100

    @property
    def failed_question_ids(self) -> Tuple[str, ...]:
        return tuple(qid for qid, is_correct in self.per_question.items() if not is_correct)


class CumulativeResults(BaseModel):
    """Session-wide statistics derived from the attempt ledger."""

    model_config = ConfigDict(frozen=True)

    total_questions: int = 0
    mastered_count: int = 0
    first_try_correct_count: int = 0
    total_attempts: int = 0
    correct_attempts: int = 0
    max_attempts: int = 0
    earned_points: float = 0.0
    total_points: float = 0.0
    per_question_history: Dict[str, Tuple[AttemptRecord, ...]] = Field(default_factory=dict)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        return self.total_questions > 0 and self.mastered_count == self.total_questions

    @property
    def accuracy(self) -> float:
        if not self.total_attempts:
            return 0.0
        return self.correct_attempts / self.total_attempts

    @property
    def first_try_percentage(self) -> float:
        if not self.total_questions:
            return 0.0
        return self.first_try_correct_count / self.total_questions * 100

    @property
    def overall_percentage(self) -> float:
        """Points earned over points available across every attempt, retries included."""
        if self.total_points <= 0:
            return 0.0
        return self.earned_points / self.total_points * 100

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


class Session(BaseModel):
    """
    Root aggregate for one memorization run.

    `question_queue` holds every batch that still has to be assessed; its head
    is the batch currently being learned or assessed. `deferred_question_ids`
    pools failures waiting for the end-of-session retry pass when failures are
    not requeued immediately. Snapshots are immutable; the store replaces the
    whole object on every transition.
    """

    model_config = ConfigDict(frozen=True)

    quiz_id: str
    options: MemorizeOptions
    questions: Tuple[Question, ...]
    chapters: Tuple[Chapter, ...] = ()
    question_queue: Tuple[Batch, ...] = ()
    batch_history: Tuple[Batch, ...] = ()
    current_batch_index: int = 0
    next_batch_index: int = 0
    deferred_question_ids: Tuple[str, ...] = ()
    retry_pass: int = 0
    ledger: Tuple[AttemptRecord, ...] = ()
    last_result: Optional[BatchResult] = None
    view_mode: ViewMode = ViewMode.LEARN

    @property
    def current_batch(self) -> Optional[Batch]:
        return self.question_queue[0] if self.question_queue else None

    @property
    def question_ids(self) -> Tuple[str, ...]:
        return tuple(question.id for question in self.questions)


class StartSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["start"] = "start"
    quiz: Quiz
    options: MemorizeOptions = Field(default_factory=MemorizeOptions)


class BeginAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["begin_assessment"] = "begin_assessment"


class SubmitAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["submit_assessment"] = "submit_assessment"
    answers: Dict[str, Any] = Field(default_factory=dict)


class ContinueSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["continue"] = "continue"


class ResetSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["reset"] = "reset"


Action = Annotated[
    Union[StartSession, BeginAssessment, SubmitAssessment, ContinueSession, ResetSession],
    Field(discriminator="type"),
]
