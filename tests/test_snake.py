"""
Tests for snake movement, collisions, and the shield wall pass.
"""

import dataclasses

import pytest

from snake_boy.core.config_loader import load_config
from snake_boy.core.grid import Direction, Position
from snake_boy.core.scheduler import ManualClock, Scheduler
from snake_boy.core.snake import SnakeEntity


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock)


@pytest.fixture
def snake(scheduler, config):
    return SnakeEntity(scheduler, config)


def make_snake(scheduler, config, length):
    """Snake with a custom starting length."""
    cfg = dataclasses.replace(
        config, snake=dataclasses.replace(config.snake, initial_length=length)
    )
    return SnakeEntity(scheduler, cfg)


class TestInitialState:
    """Test the starting layout."""

    def test_starts_horizontal_heading_right(self, snake):
        """Body runs left from the start cell with the head first."""
        assert snake.body == (Position(5, 5), Position(4, 5), Position(3, 5))
        assert snake.direction is Direction.RIGHT
        assert not snake.can_pass_walls
        assert snake.is_visible

    def test_too_small_grid_rejected(self, scheduler, config):
        """A body that does not fit raises ValueError."""
        cfg = dataclasses.replace(
            config, snake=dataclasses.replace(config.snake, initial_x=1)
        )
        with pytest.raises(ValueError):
            SnakeEntity(scheduler, cfg)

    def test_reset_restores_layout(self, snake):
        """Reset puts the body and heading back."""
        snake.set_direction(Direction.DOWN)
        snake.move()
        snake.reset()
        assert snake.head == Position(5, 5)
        assert snake.direction is Direction.RIGHT


class TestMovement:
    """Test moving and growing."""

    def test_move_shifts_body(self, snake):
        """A move adds a head and drops the tail."""
        assert snake.move()
        assert snake.body == (Position(6, 5), Position(5, 5), Position(4, 5))

    def test_grow_keeps_tail(self, snake):
        """A growing move keeps the tail."""
        assert snake.move(grow=True)
        assert snake.length == 4
        assert snake.tail == Position(3, 5)

    def test_reverse_rejected(self, snake):
        """Turning straight back is ignored."""
        assert not snake.set_direction(Direction.LEFT)
        assert snake.direction is Direction.RIGHT
        assert snake.set_direction(Direction.UP)
        assert snake.direction is Direction.UP

    def test_set_direction_type_checked(self, snake):
        """Non-Direction values raise ValueError."""
        with pytest.raises(ValueError):
            snake.set_direction("up")


class TestCollisions:
    """Test wall, self, and obstacle collisions."""

    def test_wall_collision_leaves_snake_untouched(self, snake):
        """Leaving the grid fails and nothing changes."""
        snake.set_direction(Direction.UP)
        for _ in range(5):
            assert snake.move()
        before = snake.body
        assert not snake.move()
        assert snake.body == before

    def test_self_collision(self, scheduler, config):
        """Turning into the body fails."""
        snake = make_snake(scheduler, config, 5)
        for direction in (Direction.RIGHT, Direction.DOWN, Direction.LEFT):
            snake.set_direction(direction)
            assert snake.move()
        snake.set_direction(Direction.UP)
        assert not snake.move()

    def test_moving_into_vacating_tail_allowed(self, scheduler, config):
        """The tail cell is free on a non-growing move."""
        snake = make_snake(scheduler, config, 4)
        for direction in (Direction.RIGHT, Direction.DOWN, Direction.LEFT):
            snake.set_direction(direction)
            assert snake.move()
        snake.set_direction(Direction.UP)
        assert snake.next_head() == snake.tail
        assert snake.move()

    def test_moving_into_tail_while_growing_fails(self, scheduler, config):
        """The tail stays put on a growing move, so it blocks."""
        snake = make_snake(scheduler, config, 4)
        for direction in (Direction.RIGHT, Direction.DOWN, Direction.LEFT):
            snake.set_direction(direction)
            assert snake.move()
        snake.set_direction(Direction.UP)
        assert not snake.move(grow=True)

    def test_obstacle_collision(self, snake):
        """Entering an obstacle cell fails."""
        assert not snake.move(obstacles=frozenset({Position(6, 5)}))
        assert snake.head == Position(5, 5)


class TestShield:
    """Test the single wall pass and its expiry."""

    def test_wall_pass_wraps_once(self, snake):
        """With a shield the first wall hit wraps and consumes the pass."""
        snake.apply_shield(5000)
        for _ in range(19):
            assert snake.move()
        assert snake.head == Position(24, 5)

        assert snake.move()
        assert snake.head == Position(0, 5)
        assert not snake.can_pass_walls
        assert snake.is_shielded

        snake.set_direction(Direction.UP)
        for _ in range(5):
            assert snake.move()
        assert not snake.move()

    def test_shield_expires(self, snake, clock, scheduler):
        """Unused wall pass and shield colouring clear after the duration."""
        snake.apply_shield(5000)
        clock.advance(4999)
        scheduler.run_pending()
        assert snake.can_pass_walls
        clock.advance(1)
        scheduler.run_pending()
        assert not snake.can_pass_walls
        assert not snake.is_shielded

    def test_wall_pass_onto_vacating_tail(self, scheduler, config):
        """A wrapped head may land on the tail cell it is vacating."""
        cfg = dataclasses.replace(
            config,
            snake=dataclasses.replace(config.snake, initial_x=24, initial_length=25)
        )
        snake = SnakeEntity(scheduler, cfg)
        snake.apply_shield(5000)
        # Wraps onto (0, 5): the tail, which vacates
        assert snake.move()
        assert snake.head == Position(0, 5)


class TestBlink:
    """Test visibility toggling."""

    def test_blink_toggles_then_stops(self, snake, clock, scheduler):
        """Visibility flips every blink period until the blink ends."""
        snake.start_blinking(300)
        assert snake.is_visible
        clock.advance(100)
        assert not snake.is_visible
        clock.advance(100)
        assert snake.is_visible
        clock.advance(100)
        scheduler.run_pending()
        assert not snake.is_blinking
        assert snake.is_visible
