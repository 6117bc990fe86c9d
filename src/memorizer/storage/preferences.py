from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from memorizer.memorize.models import MemorizeOptions
from memorizer.utils.logging import get_logger

logger = get_logger(__name__)

PREFERENCE_KEYS = (
    "batch_size",
    "requeue_failed_immediately",
    "shuffle_within_batch",
    "batch_by_chapter",
)


class PreferenceStore:
    """
    Key-value store for the user's preferred memorize defaults.

    Preferences live in one JSON object on disk. They only seed the options
    offered on the settings screen; session progress is never written here.
    A file that is not a JSON object is ignored with a warning and replaced on
    the next `set`.

    Examples
    --------
    >>> store = PreferenceStore(Path("data/preferences.json"))
    >>> store.set("batch_size", 10)
    >>> store.apply(MemorizeOptions()).batch_size
    10
    """

    def __init__(self, path: Path):
        """Ensure the parent directory exists and record the JSON filepath."""
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except json.JSONDecodeError as exc:
            logger.warning("preferences_unreadable", path=str(self.path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            logger.warning("preferences_unreadable", path=str(self.path), error="expected a JSON object")
            return {}
        return {key: value for key, value in data.items() if key in PREFERENCE_KEYS}

    def get(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        if key not in PREFERENCE_KEYS:
            raise KeyError(f"Unknown preference '{key}'. Expected one of: {', '.join(PREFERENCE_KEYS)}")
        data = self.load()
        data[key] = value
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, sort_keys=True)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()

    def apply(self, options: MemorizeOptions) -> MemorizeOptions:
        """Return `options` with any stored preferences layered on top."""
        stored = self.load()
        if not stored:
            return options
        return MemorizeOptions.model_validate({**options.model_dump(), **stored})
