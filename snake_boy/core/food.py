"""
Food
====

Food placement and level-weighted food type selection.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Optional

from snake_boy.core.config_loader import GameConfig, get_config
from snake_boy.core.grid import Grid, Position
from snake_boy.core.scheduler import Clock, monotonic_ms

logger = logging.getLogger(__name__)

ANIMATION_FRAMES = 4


class FoodKind(Enum):
    """Food kinds, cheapest first."""
    REGULAR = "regular"
    BONUS = "bonus"
    SPECIAL = "special"


@dataclass(frozen=True)
class FoodItem:
    """Food currently on the grid."""
    position: Position
    kind: FoodKind
    value: int


class FoodEntity:
    """
    Owns the single food item on the grid.

    Higher levels shrink the regular-food band of the type draw, skewing
    toward bonus and special food:

        level_bonus = min(cap, (level - 1) * step)
        r < p_regular - level_bonus          -> REGULAR
        r < p_regular + p_bonus              -> BONUS
        otherwise                            -> SPECIAL
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        clock: Optional[Clock] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize food.

        Args:
            config: Game configuration. Uses default if None.
            clock: Millisecond clock for the animation counter.
            seed: Random seed. Random if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._clock: Clock = clock if clock is not None else monotonic_ms
        self._rng = random.Random(seed)
        self._grid = Grid(config.grid.width, config.grid.height)

        self._regular = config.food.get_type(FoodKind.REGULAR.value)
        self._bonus = config.food.get_type(FoodKind.BONUS.value)
        self._special = config.food.get_type(FoodKind.SPECIAL.value)

        # Random samples before falling back to a full scan of free cells
        self._max_attempts = 4 * self._grid.cell_count

        self._item: Optional[FoodItem] = None
        self._animation_frame = 0
        self._last_frame_time = self._clock()

    @property
    def item(self) -> Optional[FoodItem]:
        """Current food, or None if no free cell was left at the last placement."""
        return self._item

    @property
    def position(self) -> Optional[Position]:
        return self._item.position if self._item is not None else None

    @property
    def value(self) -> int:
        return self._item.value if self._item is not None else 0

    @property
    def animation_frame(self) -> int:
        return self._animation_frame

    def level_bonus(self, level: int) -> float:
        """How far the regular-food band shrinks at `level`."""
        food = self._config.food
        return min(food.level_bonus_cap, (level - 1) * food.level_bonus_step)

    def choose_kind(self, level: int, r: Optional[float] = None) -> FoodKind:
        """
        Draw a food kind for `level`.

        Args:
            level: Current level (1-based).
            r: Uniform draw in [0, 1). Drawn from the entity's RNG if None.
        """
        if r is None:
            r = self._rng.random()
        if r < self._regular.probability - self.level_bonus(level):
            return FoodKind.REGULAR
        if r < self._regular.probability + self._bonus.probability:
            return FoodKind.BONUS
        return FoodKind.SPECIAL

    def value_of(self, kind: FoodKind) -> int:
        if kind is FoodKind.REGULAR:
            return self._regular.value
        if kind is FoodKind.BONUS:
            return self._bonus.value
        if kind is FoodKind.SPECIAL:
            return self._special.value
        raise ValueError(f"Unknown food kind: {kind!r}")

    def place(self, occupied: AbstractSet[Position], level: int = 1) -> bool:
        """
        Put new food on a random cell outside `occupied`.

        Returns:
            True if food was placed. False if every cell is occupied, in
            which case the grid is left without food.
        """
        position = self._grid.random_free_cell(
            self._rng, occupied, self._max_attempts, exhaustive=True
        )
        if position is None:
            logger.warning("No free cell for food (%d occupied)", len(occupied))
            self._item = None
            return False

        kind = self.choose_kind(level)
        self._item = FoodItem(position=position, kind=kind, value=self.value_of(kind))
        self._animation_frame = 0
        logger.debug("Placed %s food at %s", kind.value, tuple(position))
        return True

    def place_at(self, position: Position, kind: FoodKind = FoodKind.REGULAR) -> FoodItem:
        """Put food of `kind` on a specific cell. Used for scripted layouts."""
        if not self._grid.contains(position):
            raise ValueError(f"Food position {tuple(position)} is outside the grid")
        self._item = FoodItem(position=position, kind=kind, value=self.value_of(kind))
        self._animation_frame = 0
        return self._item

    def clear(self) -> None:
        self._item = None

    def update(self) -> None:
        """Advance the cosmetic animation counter."""
        now = self._clock()
        if now - self._last_frame_time > self._config.food.animation_period:
            self._animation_frame = (self._animation_frame + 1) % ANIMATION_FRAMES
            self._last_frame_time = now
