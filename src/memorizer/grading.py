"""Default answer checking for the platform's question types."""

from __future__ import annotations

import re
from typing import Any, List, Protocol

from memorizer.data_models import Question

_WHITESPACE = re.compile(r"\s+")


class Grader(Protocol):
    def grade(self, question: Question, answer: Any) -> bool: ...


def _normalize(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip().lower()


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _positional(answer: Any) -> List[Any]:
    """Blank and dropdown answers arrive as one entry per position; a bare string fills position one."""
    if isinstance(answer, str):
        return [answer]
    if isinstance(answer, (list, tuple)):
        return list(answer)
    return []


def _blank_matches(question: Question, given: Any, expected: str) -> bool:
    if not isinstance(given, str):
        return False
    if question.numeric:
        given_value, expected_value = _as_float(given.strip()), _as_float(expected.strip())
        if given_value is not None and expected_value is not None:
            return abs(given_value - expected_value) <= question.tolerance
    if question.case_sensitive:
        return given.strip() == expected.strip()
    return _normalize(given) == _normalize(expected)


def blank_results(question: Question, answer: Any) -> List[bool]:
    """Per-position correctness for fill_blank and dropdown questions; missing positions are wrong."""
    given = _positional(answer)
    given += [None] * (len(question.answers) - len(given))
    if question.type == "dropdown":
        return [value == expected for value, expected in zip(given, question.answers)]
    return [_blank_matches(question, value, expected) for value, expected in zip(given, question.answers)]


def _check_multiple_choice(question: Question, answer: Any) -> bool:
    if not isinstance(answer, str):
        return False
    return any(choice.correct and choice.id == answer for choice in question.choices)


def _check_multiple_answer(question: Question, answer: Any) -> bool:
    if not isinstance(answer, (list, tuple, set)):
        return False
    expected = {choice.id for choice in question.choices if choice.correct}
    return set(answer) == expected


def _check_true_false(question: Question, answer: Any) -> bool:
    if isinstance(answer, str):
        lowered = answer.strip().lower()
        if lowered not in {"true", "false"}:
            return False
        answer = lowered == "true"
    if not isinstance(answer, bool) or question.correct is None:
        return False
    return answer is question.correct


def _check_positions(question: Question, answer: Any) -> bool:
    results = blank_results(question, answer)
    return bool(results) and all(results)


def _check_numeric(question: Question, answer: Any) -> bool:
    value = _as_float(answer)
    if question.numeric_answer is None or value is None:
        return False
    return abs(value - question.numeric_answer) <= question.tolerance


def _check_free_text(question: Question, answer: Any) -> bool:
    if not isinstance(answer, str) or not question.reference_answer:
        return False
    return _normalize(answer) == _normalize(question.reference_answer)


_CHECKERS = {
    "multiple_choice": _check_multiple_choice,
    "multiple_answer": _check_multiple_answer,
    "true_false": _check_true_false,
    "fill_blank": _check_positions,
    "dropdown": _check_positions,
    "numeric": _check_numeric,
    "free_text": _check_free_text,
}


def grade_answer(question: Question, answer: Any) -> bool:
    """Compare a submitted answer with the question's key; `None` is always wrong."""
    if answer is None:
        return False
    return _CHECKERS[question.type](question, answer)


def score_answer(question: Question, answer: Any) -> float:
    """
    Fraction of the question's points an answer earns, between 0 and 1.

    Multiple-answer questions earn `(right picks - wrong picks) / correct choices`,
    floored at zero. Fill-blank and dropdown questions earn the share of
    positions answered correctly. Every other type is all-or-nothing.
    """
    if answer is None:
        return 0.0
    if question.type == "multiple_answer":
        if not isinstance(answer, (list, tuple, set)):
            return 0.0
        selected = set(answer)
        expected = {choice.id for choice in question.choices if choice.correct}
        if not expected:
            return 0.0
        wrong = {choice.id for choice in question.choices if not choice.correct} & selected
        return max(0.0, (len(selected & expected) - len(wrong)) / len(expected))
    if question.type in ("fill_blank", "dropdown"):
        results = blank_results(question, answer)
        return sum(results) / len(results) if results else 0.0
    return 1.0 if grade_answer(question, answer) else 0.0


def expected_answer(question: Question) -> Any:
    """Build an answer that `grade_answer` accepts as correct for the question."""
    if question.type == "multiple_choice":
        return next((choice.id for choice in question.choices if choice.correct), None)
    if question.type == "multiple_answer":
        return [choice.id for choice in question.choices if choice.correct]
    if question.type == "true_false":
        return question.correct
    if question.type in ("fill_blank", "dropdown"):
        return list(question.answers)
    if question.type == "numeric":
        return question.numeric_answer
    return question.reference_answer


class AnswerKeyGrader:
    """Grader backed by `grade_answer`, with partial credit from `score_answer`."""

    def grade(self, question: Question, answer: Any) -> bool:
        return grade_answer(question, answer)

    def score(self, question: Question, answer: Any) -> float:
        return score_answer(question, answer)
