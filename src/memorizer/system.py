from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from memorizer.config import Settings, load_settings
from memorizer.grading import AnswerKeyGrader, Grader
from memorizer.memorize import AssessmentEvaluator, FlowController, MemorizeOptions, SessionStore
from memorizer.memorize.evaluator import Clock
from memorizer.storage import PreferenceStore, QuizDirectoryLoader
from memorizer.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


class MemorizerSystem:
    """
    Main facade wiring configuration, storage and the memorization engine.

    Attributes
    ----------
    settings : Settings
        Validated configuration loaded from YAML.
    loader : QuizDirectoryLoader
        Quiz source rooted at `settings.paths.quiz_dir`.
    preferences : PreferenceStore
        Stored defaults layered over `settings.memorize`.
    grader : Grader
        Answer checker handed to every new session's evaluator.
    """

    def __init__(
        self,
        settings: Settings,
        grader: Optional[Grader] = None,
        clock: Optional[Clock] = None,
    ):
        self.settings = settings
        configure_logging(settings.logging.level, settings.logging.use_json)
        self.loader = QuizDirectoryLoader(settings.paths.quiz_dir)
        self.preferences = PreferenceStore(settings.paths.preferences_file)
        self.grader = grader or AnswerKeyGrader()
        self.clock = clock

    @classmethod
    def from_config(cls, config_path: str | Path | None = None, **kwargs: Any) -> "MemorizerSystem":
        return cls(load_settings(config_path), **kwargs)

    def resolve_options(self, **overrides: Any) -> MemorizeOptions:
        """Config defaults, then stored preferences, then explicit non-None overrides."""
        options = self.preferences.apply(self.settings.memorize)
        explicit = {key: value for key, value in overrides.items() if value is not None}
        if not explicit:
            return options
        return MemorizeOptions.model_validate({**options.model_dump(), **explicit})

    def new_controller(self) -> FlowController:
        evaluator = AssessmentEvaluator(self.grader, self.clock)
        return FlowController(
            SessionStore(evaluator),
            ignore_invalid_transitions=self.settings.engine.ignore_invalid_transitions,
        )

    async def start_session(self, quiz_id: str, options: Optional[MemorizeOptions] = None) -> FlowController:
        """Load a quiz and return a controller positioned on its first batch."""
        controller = self.new_controller()
        await controller.start_from_loader(self.loader, quiz_id, options or self.resolve_options())
        logger.debug("controller_ready", quiz_id=quiz_id)
        return controller
