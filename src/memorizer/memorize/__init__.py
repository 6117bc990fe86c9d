from .aggregator import aggregate
from .batches import build_batches
from .controller import FlowController, QuizLoader
from .errors import (
    GradingFailure,
    InvalidConfiguration,
    InvalidTransition,
    MemorizerError,
    QuizForbidden,
    QuizLoadFailure,
    QuizNotFound,
)
from .evaluator import AssessmentEvaluator
from .models import (
    AttemptRecord,
    Batch,
    BatchResult,
    CumulativeResults,
    MemorizeOptions,
    Session,
    ViewMode,
)
from .store import SessionStore, reduce

__all__ = [
    "AssessmentEvaluator",
    "AttemptRecord",
    "Batch",
    "BatchResult",
    "CumulativeResults",
    "FlowController",
    "GradingFailure",
    "InvalidConfiguration",
    "InvalidTransition",
    "MemorizeOptions",
    "MemorizerError",
    "QuizForbidden",
    "QuizLoadFailure",
    "QuizLoader",
    "QuizNotFound",
    "Session",
    "SessionStore",
    "ViewMode",
    "aggregate",
    "build_batches",
    "reduce",
]
