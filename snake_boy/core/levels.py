"""
Level Progression
=================

Handles the level counter, level-up thresholds, maze obstacles, and the
level transition window.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import FrozenSet, Optional, Set

from snake_boy.core.config_loader import GameConfig, get_config
from snake_boy.core.grid import Position
from snake_boy.core.scheduler import Clock, monotonic_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelState:
    """Level progress at a point in time."""
    level: int
    points_to_next_level: int
    transitioning: bool
    transition_start: Optional[float]
    transition_progress: float


class LevelManager:
    """
    Level counter and maze layout.

    The gap to each next level grows with the level reached:
    reaching level n adds `threshold * n` to the target score.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        clock: Optional[Clock] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize level manager.

        Args:
            config: Game configuration. Uses default if None.
            clock: Millisecond clock for the transition window.
            seed: Random seed for obstacle layout. Random if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._settings = config.levels
        self._clock: Clock = clock if clock is not None else monotonic_ms
        self._rng = random.Random(seed)

        self._maze_mode = False
        self._level = 1
        self._points_to_next_level = self._settings.threshold
        self._transitioning = False
        self._transition_start: Optional[float] = None
        self._obstacles: Set[Position] = set()

    def reset(self) -> None:
        """Back to level 1 with no obstacles."""
        self._level = 1
        self._points_to_next_level = self._settings.threshold
        self._transitioning = False
        self._transition_start = None
        self._obstacles = set()

    @property
    def level(self) -> int:
        return self._level

    @property
    def max_level(self) -> int:
        return self._settings.max_level

    @property
    def points_to_next_level(self) -> int:
        return self._points_to_next_level

    @property
    def transitioning(self) -> bool:
        return self._transitioning

    @property
    def transition_duration(self) -> int:
        return self._settings.transition_duration

    @property
    def maze_mode(self) -> bool:
        return self._maze_mode

    @maze_mode.setter
    def maze_mode(self, enabled: bool) -> None:
        """Obstacles are only ever generated while maze mode is on."""
        self._maze_mode = bool(enabled)

    @property
    def obstacles(self) -> FrozenSet[Position]:
        return frozenset(self._obstacles)

    @property
    def state(self) -> LevelState:
        return LevelState(
            level=self._level,
            points_to_next_level=self._points_to_next_level,
            transitioning=self._transitioning,
            transition_start=self._transition_start,
            transition_progress=self.transition_progress,
        )

    def check_level_up(self, score: int) -> bool:
        """True if `score` has reached the next threshold and the level cap is not hit."""
        return score >= self._points_to_next_level and self._level < self._settings.max_level

    def level_up(self) -> Optional[LevelState]:
        """
        Advance one level and open the transition window.

        Returns:
            The new level state, or None if already at the maximum level.
        """
        if self._level >= self._settings.max_level:
            return None

        self._level += 1
        self._points_to_next_level += self._settings.threshold * self._level

        self._transitioning = True
        self._transition_start = self._clock()

        if self._maze_mode or self._level >= self._settings.regenerate_from_level:
            self.generate_obstacles()

        logger.debug(
            "Level up to %d (next at %d points)", self._level, self._points_to_next_level
        )
        return self.state

    def wall_length(self) -> int:
        """Length of each wall segment at the current level."""
        return min(
            self._settings.max_wall_length,
            self._settings.base_wall_length + self._level // 2
        )

    def obstacle_count(self) -> int:
        """Number of wall segments at the current level."""
        return min(self._settings.max_obstacles, self._level * self._settings.obstacles_per_level)

    def generate_obstacles(self) -> FrozenSet[Position]:
        """
        Replace the obstacle set with a fresh random layout.

        Outside maze mode the set is simply emptied. Segments are straight
        walls kept `edge_margin` cells from every edge; they are not checked
        against each other or against anything else on the grid.
        """
        self._obstacles = set()
        if not self._maze_mode:
            return self.obstacles

        width = self._config.grid.width
        height = self._config.grid.height
        margin = self._settings.edge_margin
        length = self.wall_length()

        for _ in range(self.obstacle_count()):
            horizontal = self._rng.random() > 0.5
            start_x = self._rng.randint(margin, width - length - margin)
            start_y = self._rng.randint(margin, height - length - margin)
            for j in range(length):
                if horizontal:
                    self._obstacles.add(Position(start_x + j, start_y))
                else:
                    self._obstacles.add(Position(start_x, start_y + j))

        logger.debug("Generated %d obstacle cells for level %d", len(self._obstacles), self._level)
        return self.obstacles

    def clear_obstacles(self) -> None:
        self._obstacles = set()

    def remove_obstacles(self, cells) -> None:
        """Drop obstacle cells that overlap `cells`."""
        self._obstacles.difference_update(cells)

    def is_obstacle(self, position: Position) -> bool:
        return position in self._obstacles

    @property
    def transition_progress(self) -> float:
        """Fraction of the transition window elapsed; 1.0 when not transitioning."""
        if not self._transitioning or self._transition_start is None:
            return 1.0
        elapsed = self._clock() - self._transition_start
        duration = self._settings.transition_duration
        if duration <= 0:
            return 1.0
        return max(0.0, min(1.0, elapsed / duration))

    def update_transition(self) -> bool:
        """
        Poll the transition window.

        Returns:
            True exactly once per transition, on the first poll after it completes.
        """
        if not self._transitioning:
            return False
        if self.transition_progress >= 1.0:
            self._transitioning = False
            return True
        return False
