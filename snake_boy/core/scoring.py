"""
Scoring System
==============

Running score and the persisted high score.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from snake_boy.core.collaborators import HighScoreStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreState:
    """Score snapshot."""
    score: int
    high_score: int


class ScoreManager:
    """
    Tracks the session score and the all-time high score.

    The high score is loaded once from the store when the manager is built
    and written through to it every time the running score passes it.
    Store failures are logged and ignored; the in-memory high score stays
    authoritative for the session.
    """

    def __init__(self, store: Optional[HighScoreStore] = None):
        """
        Initialize score manager.

        Args:
            store: High score persistence. High score starts at 0 and is
                never persisted if None.
        """
        self._store = store
        self._score: int = 0
        self._high_score: int = self._load_high_score()

    def _load_high_score(self) -> int:
        if self._store is None:
            return 0
        try:
            return max(0, int(self._store.load_high_score()))
        except Exception as e:
            logger.warning("High score load failed, starting from 0: %s", e)
            return 0

    @property
    def score(self) -> int:
        """Current session score."""
        return self._score

    @property
    def high_score(self) -> int:
        return self._high_score

    @property
    def state(self) -> ScoreState:
        return ScoreState(score=self._score, high_score=self._high_score)

    def add_points(self, points: int) -> int:
        """
        Add points to the running score.

        Args:
            points: Non-negative points to add.

        Returns:
            The new score.
        """
        if points < 0:
            raise ValueError(f"Points must be >= 0, got {points}")

        self._score += points
        if self._score > self._high_score:
            self._high_score = self._score
            self._save_high_score()
        return self._score

    def _save_high_score(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save_high_score(self._high_score)
        except Exception as e:
            logger.warning("High score save failed: %s", e)

    def reset_score(self) -> None:
        """Zero the session score. The high score is kept."""
        self._score = 0
