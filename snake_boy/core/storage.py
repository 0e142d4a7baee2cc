"""
High Score Storage
==================

HighScoreStore implementations: a JSON file keyed by a fixed identifier,
and an in-memory store for tests and headless runs.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Union

from snake_boy.core.collaborators import HighScoreStore
from snake_boy.core.config_loader import GameConfig, get_config

logger = logging.getLogger(__name__)

DEFAULT_HIGH_SCORE_KEY = "snakeBoyHighScore"


class MemoryHighScoreStore(HighScoreStore):
    """Keeps the high score in memory only."""

    def __init__(self, initial: int = 0):
        self._value = int(initial)
        self.saves = 0

    def load_high_score(self) -> int:
        return self._value

    def save_high_score(self, score: int) -> None:
        self._value = int(score)
        self.saves += 1


class JsonHighScoreStore(HighScoreStore):
    """
    Stores `{key: score}` in a JSON file.

    Other keys already in the file are preserved. A missing, unreadable, or
    malformed file reads as 0.
    """

    def __init__(
        self,
        path: Union[str, Path],
        key: str = DEFAULT_HIGH_SCORE_KEY
    ):
        self._path = Path(path)
        self._key = key

    @classmethod
    def from_config(cls, config: Optional[GameConfig] = None) -> "JsonHighScoreStore":
        """Build a store at the configured path and key."""
        if config is None:
            config = get_config()
        return cls(config.storage.resolved_path, config.storage.high_score_key)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def key(self) -> str:
        return self._key

    def _read(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read high score file %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def load_high_score(self) -> int:
        value = self._read().get(self._key)
        if value is None:
            return 0
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            logger.warning("Ignoring non-integer high score %r in %s", value, self._path)
            return 0

    def save_high_score(self, score: int) -> None:
        data = self._read()
        data[self._key] = int(score)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w") as f:
            json.dump(data, f, indent=2)
