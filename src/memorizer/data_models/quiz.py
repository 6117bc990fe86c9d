from __future__ import annotations

from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, validator

QuestionType = Literal[
    "multiple_choice",
    "multiple_answer",
    "true_false",
    "fill_blank",
    "dropdown",
    "numeric",
    "free_text",
]

# Shapes the answer widgets can submit: a choice id, a list of choice ids or
# blank entries, a boolean, a number, free text, or nothing at all.
UserAnswer = Union[bool, float, str, List[str], None]


class Choice(BaseModel):
    """Selectable option for choice-based questions."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    correct: bool = False


class Chapter(BaseModel):
    """Named grouping of questions inside a quiz."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class Question(BaseModel):
    """Single quiz item with an answer key the grader understands."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    type: QuestionType = "multiple_choice"
    choices: Tuple[Choice, ...] = ()
    correct: Optional[bool] = None  # true_false
    answers: Tuple[str, ...] = ()  # fill_blank text or dropdown choice id, one per blank
    case_sensitive: bool = False  # fill_blank
    numeric: bool = False  # fill_blank blanks compared as numbers within `tolerance`
    numeric_answer: Optional[float] = None
    tolerance: float = Field(0.0, ge=0.0)
    reference_answer: Optional[str] = None  # free_text
    points: float = Field(1.0, ge=0.0)
    chapter: Optional[str] = None
    explanation: Optional[str] = None

    @validator("choices")
    def validate_choices(cls, value: Tuple[Choice, ...]) -> Tuple[Choice, ...]:
        ids = [choice.id for choice in value]
        if len(ids) != len(set(ids)):
            raise ValueError("choice ids must be unique within a question")
        return value


class Quiz(BaseModel):
    """Ordered question set as returned by a quiz loader."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    questions: Tuple[Question, ...] = ()
    chapters: Tuple[Chapter, ...] = ()

    @validator("questions")
    def validate_questions(cls, value: Tuple[Question, ...]) -> Tuple[Question, ...]:
        ids = [question.id for question in value]
        if len(ids) != len(set(ids)):
            raise ValueError("question ids must be unique within a quiz")
        return value

    def chapter_name(self, chapter_id: Optional[str]) -> Optional[str]:
        """Return the display name for a chapter id, if the quiz defines it."""
        for chapter in self.chapters:
            if chapter.id == chapter_id:
                return chapter.name
        return None
