"""
Tests for the immutable state snapshot and its packed grid.
"""

import dataclasses

import numpy as np
import pytest

from snake_boy.core.config_loader import load_config
from snake_boy.core.game import GameMode, GameStateMachine
from snake_boy.core.grid import Position
from snake_boy.core.power_ups import PowerUpKind
from snake_boy.core.scheduler import ManualClock
from snake_boy.core.state_snapshot import CellType


@pytest.fixture
def config():
    base = load_config()
    return dataclasses.replace(
        base, power_ups=dataclasses.replace(base.power_ups, spawn_chance=0.0)
    )


@pytest.fixture
def game(config):
    return GameStateMachine(config=config, clock=ManualClock(), seed=3)


class TestSnapshot:
    """Test snapshot contents."""

    def test_reflects_state(self, game):
        """Snapshot fields mirror the live game."""
        game.start()
        game.food.place_at(Position(0, 20))
        snapshot = game.snapshot()
        assert snapshot.status == "PLAYING"
        assert snapshot.mode == "CLASSIC"
        assert snapshot.snake_body == game.snake.body
        assert snapshot.food.position == Position(0, 20)
        assert snapshot.score == 0
        assert snapshot.level == 1
        assert snapshot.points_to_next_level == 50
        assert not snapshot.level_transition.active
        assert snapshot.combo_multiplier == 1.0

    def test_is_immutable(self, game):
        """Snapshots cannot be modified."""
        snapshot = game.snapshot()
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.score = 100

    def test_later_changes_do_not_leak(self, game):
        """A snapshot keeps the state it was taken at."""
        game.start()
        snapshot = game.snapshot()
        game.tick()
        assert snapshot.snake_body[0] == Position(5, 5)

    def test_time_display_rounds_up(self, game):
        """The countdown shows whole seconds rounded up."""
        game.set_mode(GameMode.TIME_ATTACK)
        game.start()
        game.food.place_at(Position(0, 20))
        game.tick()
        snapshot = game.snapshot()
        assert snapshot.time_remaining == pytest.approx(29.85)
        assert snapshot.time_remaining_display == 30


class TestGrid:
    """Test the packed numpy grid."""

    def test_cell_codes(self, game):
        """Head, body, food, and power-up cells carry their codes."""
        game.start()
        game.food.place_at(Position(0, 20))
        game.power_ups.place_at(Position(10, 10), PowerUpKind.SLOW_MODE)
        grid = game.snapshot().to_grid()

        assert grid.shape == (22, 25)
        assert grid.dtype == np.int8
        assert grid[5, 5] == CellType.HEAD
        assert grid[5, 4] == CellType.BODY
        assert grid[5, 3] == CellType.BODY
        assert grid[20, 0] == CellType.FOOD
        assert grid[10, 10] == CellType.POWER_UP
        assert int((grid == CellType.EMPTY).sum()) == 25 * 22 - 5

    def test_obstacle_codes(self, game):
        """Maze obstacles are marked on the grid."""
        game.set_mode(GameMode.MAZE)
        game.start()
        snapshot = game.snapshot()
        grid = snapshot.to_grid()
        for cell in snapshot.obstacles:
            assert grid[cell.y, cell.x] == CellType.OBSTACLE
        assert int((grid == CellType.OBSTACLE).sum()) == len(snapshot.obstacles)


class TestRenderDict:
    """Test the plain-data view."""

    def test_plain_values(self, game):
        """The render dict holds only plain values."""
        game.start()
        data = game.snapshot().to_render_dict()
        assert data["status"] == "PLAYING"
        assert data["snake"]["body"][0] == (5, 5)
        assert data["snake"]["direction"] == "RIGHT"
        assert data["effects"] == {"shield": False, "speed_boost": False, "slow_mode": False}
        assert data["power_up"] is None
        assert data["level_transition"]["progress"] == 1.0
