"""
State Snapshot
==============

Immutable per-frame view of the whole game for renderers, plus a packed
numpy grid of cell codes for anything that wants the board as an array.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Tuple, TYPE_CHECKING

import numpy as np

from snake_boy.core.config_loader import GameConfig, get_config
from snake_boy.core.food import FoodItem
from snake_boy.core.grid import Direction, Position
from snake_boy.core.power_ups import ActiveEffects, PowerUp

if TYPE_CHECKING:
    from snake_boy.core.food import FoodEntity
    from snake_boy.core.levels import LevelManager
    from snake_boy.core.power_ups import PowerUpManager
    from snake_boy.core.scoring import ScoreManager
    from snake_boy.core.snake import SnakeEntity


class CellType(enum.IntEnum):
    """Integer codes stored in the packed grid."""
    EMPTY = 0
    BODY = 1
    HEAD = 2
    FOOD = 3
    POWER_UP = 4
    OBSTACLE = 5


@dataclass(frozen=True)
class LevelTransition:
    active: bool
    progress: float


@dataclass(frozen=True)
class GameSnapshot:
    """
    Complete game state at one instant.

    Status and mode are carried as their enum values' names so this module
    does not depend on the orchestrator.
    """
    # Session
    status: str
    mode: str
    grid_width: int
    grid_height: int

    # Snake
    snake_body: Tuple[Position, ...]
    snake_direction: Direction
    snake_visible: bool
    snake_shielded: bool

    # Items
    food: Optional[FoodItem]
    food_animation_frame: int
    power_up: Optional[PowerUp]
    power_up_animation_frame: int
    active_effects: ActiveEffects
    obstacles: FrozenSet[Position]

    # Progress
    score: int
    high_score: int
    level: int
    points_to_next_level: int
    level_transition: LevelTransition
    combo_multiplier: float
    time_remaining: float
    invulnerable: bool
    frame_count: int

    @property
    def time_remaining_display(self) -> int:
        """Whole seconds left, rounded up the way the countdown is shown."""
        return max(0, math.ceil(self.time_remaining))

    def to_grid(self) -> np.ndarray:
        """
        Pack the board into a (height, width) int8 array of CellType codes.

        Later layers win: obstacles, food, power-up, body, head.
        """
        grid = np.zeros((self.grid_height, self.grid_width), dtype=np.int8)

        for cell in self.obstacles:
            grid[cell.y, cell.x] = CellType.OBSTACLE
        if self.food is not None:
            grid[self.food.position.y, self.food.position.x] = CellType.FOOD
        if self.power_up is not None and self.power_up.active:
            grid[self.power_up.position.y, self.power_up.position.x] = CellType.POWER_UP
        for cell in self.snake_body[1:]:
            grid[cell.y, cell.x] = CellType.BODY
        if self.snake_body:
            head = self.snake_body[0]
            grid[head.y, head.x] = CellType.HEAD

        return grid

    def to_render_dict(self) -> Dict[str, Any]:
        """Plain-data view for renderers."""
        return {
            "status": self.status,
            "mode": self.mode,
            "grid_width": self.grid_width,
            "grid_height": self.grid_height,
            "snake": {
                "body": [tuple(p) for p in self.snake_body],
                "direction": self.snake_direction.name,
                "visible": self.snake_visible,
                "shielded": self.snake_shielded,
            },
            "food": None if self.food is None else {
                "position": tuple(self.food.position),
                "kind": self.food.kind.value,
                "value": self.food.value,
                "animation_frame": self.food_animation_frame,
            },
            "power_up": None if self.power_up is None else {
                "position": tuple(self.power_up.position),
                "kind": self.power_up.kind.value,
                "active": self.power_up.active,
                "animation_frame": self.power_up_animation_frame,
            },
            "effects": {
                "shield": self.active_effects.shield,
                "speed_boost": self.active_effects.speed_boost,
                "slow_mode": self.active_effects.slow_mode,
            },
            "obstacles": sorted(tuple(p) for p in self.obstacles),
            "score": self.score,
            "high_score": self.high_score,
            "level": self.level,
            "points_to_next_level": self.points_to_next_level,
            "level_transition": {
                "active": self.level_transition.active,
                "progress": self.level_transition.progress,
            },
            "combo_multiplier": self.combo_multiplier,
            "time_remaining": self.time_remaining_display,
            "invulnerable": self.invulnerable,
            "frame_count": self.frame_count,
        }


class SnapshotBuilder:
    """Builds snapshots from the live components."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._grid_width = config.grid.width
        self._grid_height = config.grid.height

    def build(
        self,
        status: str,
        mode: str,
        snake: "SnakeEntity",
        food: "FoodEntity",
        power_ups: "PowerUpManager",
        levels: "LevelManager",
        scores: "ScoreManager",
        combo_multiplier: float,
        time_remaining: float,
        invulnerable: bool,
        frame_count: int
    ) -> GameSnapshot:
        """Build a snapshot from current game state."""
        return GameSnapshot(
            status=status,
            mode=mode,
            grid_width=self._grid_width,
            grid_height=self._grid_height,
            snake_body=snake.body,
            snake_direction=snake.direction,
            snake_visible=snake.is_visible,
            snake_shielded=snake.is_shielded,
            food=food.item,
            food_animation_frame=food.animation_frame,
            power_up=power_ups.power_up if power_ups.active else None,
            power_up_animation_frame=power_ups.animation_frame,
            active_effects=power_ups.effects,
            obstacles=levels.obstacles,
            score=scores.score,
            high_score=scores.high_score,
            level=levels.level,
            points_to_next_level=levels.points_to_next_level,
            level_transition=LevelTransition(
                active=levels.transitioning,
                progress=levels.transition_progress,
            ),
            combo_multiplier=combo_multiplier,
            time_remaining=time_remaining,
            invulnerable=invulnerable,
            frame_count=frame_count,
        )
