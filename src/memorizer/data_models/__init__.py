from .quiz import Chapter, Choice, Question, QuestionType, Quiz, UserAnswer

__all__ = [
    "Chapter",
    "Choice",
    "Question",
    "QuestionType",
    "Quiz",
    "UserAnswer",
]
