"""
Tests for level progression, maze obstacles, and the level transition.
"""

import pytest

from snake_boy.core.config_loader import load_config
from snake_boy.core.levels import LevelManager
from snake_boy.core.scheduler import ManualClock


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def levels(config, clock):
    return LevelManager(config, clock, seed=5)


class TestThresholds:
    """Test the growing level-up targets."""

    def test_starts_at_level_one(self, levels):
        """Level 1 needs the base threshold."""
        assert levels.level == 1
        assert levels.points_to_next_level == 50

    def test_check_level_up(self, levels):
        """Reaching the target triggers a level up."""
        assert not levels.check_level_up(49)
        assert levels.check_level_up(50)

    def test_gap_grows_with_level(self, levels):
        """Reaching level n adds threshold * n to the target."""
        levels.level_up()
        assert levels.level == 2
        assert levels.points_to_next_level == 150
        levels.level_up()
        assert levels.points_to_next_level == 300

    def test_max_level_is_final(self, levels):
        """No level up past the maximum."""
        for _ in range(9):
            assert levels.level_up() is not None
        assert levels.level == 10
        assert levels.level_up() is None
        assert not levels.check_level_up(10 ** 9)

    def test_reset(self, levels):
        """Reset returns to level 1 with no obstacles."""
        levels.maze_mode = True
        levels.level_up()
        levels.reset()
        assert levels.level == 1
        assert levels.points_to_next_level == 50
        assert levels.obstacles == frozenset()


class TestObstacles:
    """Test maze wall generation."""

    def test_wall_length_and_count(self, levels):
        """Walls lengthen every two levels and the count grows per level, both capped."""
        assert levels.wall_length() == 2
        assert levels.obstacle_count() == 2
        for _ in range(4):
            levels.level_up()
        assert levels.level == 5
        assert levels.wall_length() == 4
        assert levels.obstacle_count() == 10
        for _ in range(5):
            levels.level_up()
        assert levels.wall_length() == 6
        assert levels.obstacle_count() == 10

    def test_no_obstacles_outside_maze_mode(self, levels):
        """Generation outside maze mode leaves the grid clear."""
        assert levels.generate_obstacles() == frozenset()
        for _ in range(4):
            levels.level_up()
        assert levels.obstacles == frozenset()

    def test_maze_walls_respect_margin(self, levels, config):
        """Every wall cell stays edge_margin away from the edges."""
        levels.maze_mode = True
        margin = config.levels.edge_margin
        for _ in range(9):
            levels.level_up()
            assert levels.obstacles
            for cell in levels.obstacles:
                assert margin <= cell.x < config.grid.width - margin
                assert margin <= cell.y < config.grid.height - margin

    def test_maze_walls_are_straight_segments(self, levels):
        """Level 1 maze has at most two walls of two cells."""
        levels.maze_mode = True
        cells = levels.generate_obstacles()
        assert 1 <= len(cells) <= 4

    def test_remove_obstacles(self, levels):
        """Removing cells drops only those cells."""
        levels.maze_mode = True
        cells = sorted(levels.generate_obstacles())
        levels.remove_obstacles({cells[0]})
        assert not levels.is_obstacle(cells[0])
        assert levels.obstacles == frozenset(cells[1:])


class TestTransition:
    """Test the level transition window."""

    def test_not_transitioning_initially(self, levels):
        """Progress is complete when no transition runs."""
        assert not levels.transitioning
        assert levels.transition_progress == 1.0
        assert not levels.update_transition()

    def test_completes_exactly_once(self, levels, clock):
        """update_transition reports completion once, after the duration."""
        levels.level_up()
        assert levels.transitioning
        clock.advance(750)
        assert levels.transition_progress == pytest.approx(0.5)
        assert not levels.update_transition()
        clock.advance(750)
        assert levels.update_transition()
        assert not levels.transitioning
        assert not levels.update_transition()
