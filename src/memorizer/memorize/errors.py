"""Error taxonomy for the memorization engine."""

from __future__ import annotations


class MemorizerError(Exception):
    """Base class for all engine errors."""


class InvalidConfiguration(MemorizerError):
    """Options or question set cannot produce a session; nothing is created."""


class InvalidTransition(MemorizerError):
    """An action was dispatched that the current view mode does not accept."""

    def __init__(self, action: str, view_mode: str):
        super().__init__(f"Cannot apply '{action}' while in '{view_mode}' mode.")
        self.action = action
        self.view_mode = view_mode


class QuizLoadFailure(MemorizerError):
    """The external quiz loader could not supply the quiz."""

    def __init__(self, quiz_id: str, message: str):
        super().__init__(message)
        self.quiz_id = quiz_id


class QuizNotFound(QuizLoadFailure):
    def __init__(self, quiz_id: str):
        super().__init__(quiz_id, f"Quiz '{quiz_id}' was not found.")


class QuizForbidden(QuizLoadFailure):
    def __init__(self, quiz_id: str):
        super().__init__(quiz_id, f"Access to quiz '{quiz_id}' is forbidden.")


class GradingFailure(MemorizerError):
    """The grader raised while checking one answer."""

    def __init__(self, question_id: str, cause: BaseException):
        super().__init__(f"Grading failed for question '{question_id}': {cause}")
        self.question_id = question_id
        self.cause = cause
