from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, validator

from memorizer.memorize.models import MemorizeOptions


class EngineConfig(BaseModel):
    """Behaviour switches for the flow controller."""

    ignore_invalid_transitions: bool = Field(
        False,
        description="Log and ignore out-of-order UI calls instead of raising InvalidTransition.",
    )


class PathsConfig(BaseModel):
    """Filesystem layout for quiz files and stored preferences."""

    quiz_dir: Path = Field(Path("data/quizzes"))
    preferences_file: Path = Field(Path("data/preferences.json"))


class LoggingConfig(BaseModel):
    """Controls for logging output and format."""

    level: str = Field("INFO")
    use_json: bool = False

    @validator("level")
    def normalize_level(cls, value: str) -> str:
        """Upper-case the level so YAML may spell it either way."""
        return value.upper()


class Settings(BaseModel):
    """Top-level project configuration aggregating all sub-settings."""

    project_name: str = Field("Quiz Memorizer")
    memorize: MemorizeOptions = Field(default_factory=MemorizeOptions)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
