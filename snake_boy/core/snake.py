"""
Snake Entity
============

Owns the body segments, heading, movement and collision rules, and the
temporary wall-pass ability granted by a shield.
"""

from __future__ import annotations

from collections import deque
from typing import AbstractSet, Deque, Optional, Set, Tuple

from snake_boy.core.config_loader import GameConfig, get_config
from snake_boy.core.grid import Direction, Grid, Position
from snake_boy.core.scheduler import Scheduler

WALL_PASS_TIMER = "snake.wall_pass"
BLINK_TIMER = "snake.blink"


class SnakeEntity:
    """
    The player-controlled snake.

    The body runs from the head at index 0 to the tail at the end. A move is
    validated completely before anything is committed, so a failed move
    leaves the snake untouched.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: Optional[GameConfig] = None
    ):
        """
        Initialize snake.

        Args:
            scheduler: Shared timer table for shield and blink expiry.
            config: Game configuration. Uses default if None.

        Raises:
            ValueError: If the initial body does not fit on the grid.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._scheduler = scheduler
        self._grid = Grid(config.grid.width, config.grid.height)

        self._initial_head = Position(config.snake.initial_x, config.snake.initial_y)
        self._initial_length = config.snake.initial_length
        self._blink_period = config.snake.blink_period

        tail = Position(self._initial_head.x - (self._initial_length - 1), self._initial_head.y)
        if not (self._grid.contains(self._initial_head) and self._grid.contains(tail)):
            raise ValueError(
                f"Grid {self._grid.width}x{self._grid.height} too small for a snake of "
                f"length {self._initial_length} at {tuple(self._initial_head)}"
            )

        self._body: Deque[Position] = deque()
        self._direction = Direction.RIGHT
        self._can_pass_walls = False
        self._shielded = False
        self._blink_start: Optional[float] = None
        self._blink_until: Optional[float] = None

        self.reset()

    def reset(self) -> None:
        """Lay the body out horizontally left of the start cell, heading right, effects cleared."""
        self._body = deque(
            Position(self._initial_head.x - i, self._initial_head.y)
            for i in range(self._initial_length)
        )
        self._direction = Direction.RIGHT
        self._scheduler.cancel_many((WALL_PASS_TIMER, BLINK_TIMER))
        self._can_pass_walls = False
        self._shielded = False
        self._blink_start = None
        self._blink_until = None

    @property
    def body(self) -> Tuple[Position, ...]:
        """Body segments, head first."""
        return tuple(self._body)

    @property
    def head(self) -> Position:
        return self._body[0]

    @property
    def tail(self) -> Position:
        return self._body[-1]

    @property
    def direction(self) -> Direction:
        return self._direction

    @property
    def length(self) -> int:
        return len(self._body)

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def can_pass_walls(self) -> bool:
        """True while an unused wall-pass grant is held."""
        return self._can_pass_walls

    @property
    def is_shielded(self) -> bool:
        """True while the shield colouring applies."""
        return self._shielded

    @property
    def is_blinking(self) -> bool:
        return self._blink_until is not None

    @property
    def is_visible(self) -> bool:
        """Visibility for rendering; toggles every blink period while blinking."""
        if self._blink_start is None:
            return True
        elapsed = self._scheduler.now() - self._blink_start
        return int(elapsed // self._blink_period) % 2 == 0

    def cells(self) -> Set[Position]:
        return set(self._body)

    def is_head_at(self, position: Optional[Position]) -> bool:
        return position is not None and self._body[0] == position

    def occupies(self, position: Position) -> bool:
        return position in self._body

    def set_direction(self, direction: Direction) -> bool:
        """
        Change heading. The reverse of the current heading is rejected.

        Returns:
            True if the heading was accepted.
        """
        if not isinstance(direction, Direction):
            raise ValueError(f"Not a Direction: {direction!r}")
        if self._direction.is_opposite(direction):
            return False
        self._direction = direction
        return True

    def next_head(self) -> Position:
        """Cell the head would enter on the next move, before wall handling."""
        return self.head.offset(self._direction)

    def move(self, grow: bool = False, obstacles: AbstractSet[Position] = frozenset()) -> bool:
        """
        Advance one cell in the current direction.

        Args:
            grow: Keep the tail this move.
            obstacles: Cells that end the game on contact.

        Returns:
            True if the move was committed, False on any collision.
        """
        new_head = self.next_head()
        uses_wall_pass = False

        if not self._grid.contains(new_head):
            if not self._can_pass_walls:
                return False
            new_head = self._grid.wrap(new_head)
            uses_wall_pass = True

        # The tail vacates its cell unless growing
        if grow:
            blocked = new_head in self._body
        else:
            blocked = any(
                segment == new_head
                for i, segment in enumerate(self._body)
                if i < len(self._body) - 1
            )
        if blocked:
            return False

        if new_head in obstacles:
            return False

        if uses_wall_pass:
            self._can_pass_walls = False
        self._body.appendleft(new_head)
        if not grow:
            self._body.pop()
        return True

    def apply_shield(self, duration: float) -> None:
        """
        Grant a single wall pass and shield colouring for `duration` ms.

        Both clear when the duration elapses, whether or not the pass was used.
        """
        if duration < 0:
            raise ValueError(f"Shield duration must be >= 0, got {duration}")
        self._can_pass_walls = True
        self._shielded = True
        self.start_blinking(duration)
        self._scheduler.schedule(WALL_PASS_TIMER, duration, self._end_shield)

    def _end_shield(self) -> None:
        self._can_pass_walls = False
        self._shielded = False

    def start_blinking(self, duration: float) -> None:
        """Blink for `duration` ms, replacing any blink in progress."""
        if duration < 0:
            raise ValueError(f"Blink duration must be >= 0, got {duration}")
        now = self._scheduler.now()
        self._blink_start = now
        self._blink_until = now + duration
        self._scheduler.schedule(BLINK_TIMER, duration, self.stop_blinking)

    def stop_blinking(self) -> None:
        self._scheduler.cancel(BLINK_TIMER)
        self._blink_start = None
        self._blink_until = None
