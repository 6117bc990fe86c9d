from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from memorizer.data_models import Quiz
from memorizer.memorize.errors import QuizForbidden, QuizLoadFailure, QuizNotFound
from memorizer.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_SUFFIXES = (".json", ".yaml", ".yml")
_SAFE_ID = re.compile(r"^[A-Za-z0-9_\-]+$")


class QuizDirectoryLoader:
    """
    Load quizzes stored as `{quiz_id}.json` / `.yaml` files in one directory.

    Reading happens in a worker thread so `load_quiz` can be awaited from an
    event loop. Missing files raise `QuizNotFound`; unreadable files and
    quizzes marked `"status": "draft"` raise `QuizForbidden`.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def quiz_path(self, quiz_id: str) -> Optional[Path]:
        """Return the first existing file for the quiz id, if any."""
        if not _SAFE_ID.match(quiz_id):
            return None
        for suffix in SUPPORTED_SUFFIXES:
            candidate = self.base_dir / f"{quiz_id}{suffix}"
            if candidate.exists():
                return candidate
        return None

    def list_quiz_ids(self) -> List[str]:
        if not self.base_dir.exists():
            return []
        return sorted(
            {path.stem for path in self.base_dir.iterdir() if path.suffix in SUPPORTED_SUFFIXES}
        )

    async def load_quiz(self, quiz_id: str) -> Quiz:
        return await asyncio.to_thread(self.load_quiz_sync, quiz_id)

    def load_quiz_sync(self, quiz_id: str) -> Quiz:
        path = self.quiz_path(quiz_id)
        if path is None:
            raise QuizNotFound(quiz_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except PermissionError as exc:
            raise QuizForbidden(quiz_id) from exc

        try:
            payload = _parse(raw, path.suffix)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            logger.error("quiz_parse_failed", quiz_id=quiz_id, path=str(path))
            raise QuizLoadFailure(quiz_id, f"Quiz file {path.name} is not valid.") from exc

        if not isinstance(payload, dict):
            raise QuizLoadFailure(quiz_id, f"Quiz file {path.name} must contain a mapping.")
        if payload.get("status") == "draft":
            raise QuizForbidden(quiz_id)
        payload.setdefault("id", quiz_id)

        try:
            quiz = Quiz.model_validate(_normalize(payload))
        except (ValidationError, TypeError, ValueError) as exc:
            logger.error("quiz_validation_failed", quiz_id=quiz_id, error=str(exc))
            raise QuizLoadFailure(quiz_id, f"Quiz '{quiz_id}' has an invalid structure.") from exc

        logger.debug("quiz_loaded", quiz_id=quiz.id, questions=len(quiz.questions))
        return quiz


def _parse(raw: str, suffix: str) -> Any:
    if suffix == ".json":
        return json.loads(raw)
    return yaml.safe_load(raw)


def _normalize(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in ids the authoring format lets writers omit (q1, q2... and a, b, c...)."""
    data = dict(payload)
    data.pop("status", None)
    questions = []
    for idx, raw_question in enumerate(data.get("questions") or [], start=1):
        question = dict(raw_question)
        question.setdefault("id", f"q{idx}")
        choices = []
        for choice_idx, raw_choice in enumerate(question.get("choices") or []):
            choice = dict(raw_choice)
            choice.setdefault("id", chr(ord("a") + choice_idx))
            choices.append(choice)
        question["choices"] = choices
        questions.append(question)
    data["questions"] = questions
    return data
