from .preferences import PreferenceStore
from .quiz_store import QuizDirectoryLoader

__all__ = ["PreferenceStore", "QuizDirectoryLoader"]
