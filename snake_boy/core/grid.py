"""
Grid Geometry
=============

Cell coordinates, movement directions, and bounded-grid helpers shared by
every entity on the board. Coordinates grow right (x) and down (y).
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Iterator, List, NamedTuple, Optional, Tuple


class Position(NamedTuple):
    """A grid cell. Equality is value equality."""
    x: int
    y: int

    def offset(self, direction: "Direction") -> "Position":
        """Return the neighbouring cell one step in the given direction."""
        dx, dy = direction.delta
        return Position(self.x + dx, self.y + dy)


class Direction(Enum):
    """Unit movement deltas."""
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def delta(self) -> Tuple[int, int]:
        return self.value

    @property
    def opposite(self) -> "Direction":
        dx, dy = self.value
        return Direction((-dx, -dy))

    def is_opposite(self, other: "Direction") -> bool:
        """True if `other` would reverse this direction."""
        return other is self.opposite

    @classmethod
    def from_name(cls, name: str) -> "Direction":
        """Look up a direction by case-insensitive name."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown direction: {name!r}") from None


@dataclass(frozen=True)
class Grid:
    """
    Bounded rectangular grid of `width` x `height` cells.

    Cells outside [0, width) x [0, height) are out of bounds.
    """
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Grid must be at least 1x1, got {self.width}x{self.height}")

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    def contains(self, position: Position) -> bool:
        """True if the cell is inside the grid."""
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def wrap(self, position: Position) -> Position:
        """Wrap a cell modulo the grid extent."""
        return Position(position.x % self.width, position.y % self.height)

    def cells(self) -> Iterator[Position]:
        """Iterate every cell row by row."""
        for y in range(self.height):
            for x in range(self.width):
                yield Position(x, y)

    def random_cell(self, rng: random.Random) -> Position:
        """Uniformly random cell."""
        return Position(rng.randint(0, self.width - 1), rng.randint(0, self.height - 1))

    def free_cells(self, occupied: AbstractSet[Position]) -> List[Position]:
        """All cells not in `occupied`, row by row."""
        return [cell for cell in self.cells() if cell not in occupied]

    def random_free_cell(
        self,
        rng: random.Random,
        occupied: AbstractSet[Position],
        max_attempts: int,
        exhaustive: bool = False
    ) -> Optional[Position]:
        """
        Sample random cells until one outside `occupied` is found.

        Args:
            rng: Random source.
            occupied: Cells to avoid.
            max_attempts: Number of random samples before giving up.
            exhaustive: If True, fall back to choosing among all free cells
                once the random samples are spent.

        Returns:
            A free cell, or None if none was found.
        """
        for _ in range(max_attempts):
            candidate = self.random_cell(rng)
            if candidate not in occupied:
                return candidate

        if not exhaustive:
            return None

        free = self.free_cells(occupied)
        if not free:
            return None
        return rng.choice(free)
