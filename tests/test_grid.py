"""
Tests for grid geometry and directions.
"""

import random

import pytest

from snake_boy.core.grid import Direction, Grid, Position


@pytest.fixture
def grid():
    return Grid(25, 22)


class TestDirection:
    """Test direction deltas and reversal."""

    def test_deltas_grow_right_and_down(self):
        """RIGHT increases x and DOWN increases y."""
        assert Direction.RIGHT.delta == (1, 0)
        assert Direction.DOWN.delta == (0, 1)
        assert Direction.UP.delta == (0, -1)
        assert Direction.LEFT.delta == (-1, 0)

    def test_opposites(self):
        """Each direction's opposite negates its delta."""
        assert Direction.UP.opposite is Direction.DOWN
        assert Direction.LEFT.opposite is Direction.RIGHT
        assert Direction.RIGHT.is_opposite(Direction.LEFT)
        assert not Direction.RIGHT.is_opposite(Direction.UP)

    def test_from_name_is_case_insensitive(self):
        """Names resolve regardless of case."""
        assert Direction.from_name("up") is Direction.UP
        assert Direction.from_name("Right") is Direction.RIGHT

    def test_from_name_rejects_unknown(self):
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError):
            Direction.from_name("north")


class TestPosition:
    """Test cell value semantics."""

    def test_value_equality(self):
        """Positions with equal coordinates are equal and hash alike."""
        assert Position(3, 4) == Position(3, 4)
        assert len({Position(3, 4), Position(3, 4)}) == 1

    def test_offset(self):
        """Offset moves one cell in the given direction."""
        assert Position(3, 4).offset(Direction.UP) == Position(3, 3)
        assert Position(3, 4).offset(Direction.RIGHT) == Position(4, 4)


class TestGrid:
    """Test bounds and free-cell search."""

    def test_rejects_empty_grid(self):
        """Zero-sized grids are invalid."""
        with pytest.raises(ValueError):
            Grid(0, 10)

    def test_contains(self, grid):
        """Cells outside [0, w) x [0, h) are out of bounds."""
        assert grid.contains(Position(0, 0))
        assert grid.contains(Position(24, 21))
        assert not grid.contains(Position(25, 0))
        assert not grid.contains(Position(0, -1))

    def test_wrap(self, grid):
        """Wrapping is modulo the grid extent on both axes."""
        assert grid.wrap(Position(25, 5)) == Position(0, 5)
        assert grid.wrap(Position(-1, 5)) == Position(24, 5)
        assert grid.wrap(Position(3, -1)) == Position(3, 21)

    def test_cell_count(self, grid):
        """Cell count is width times height."""
        assert grid.cell_count == 550
        assert len(list(grid.cells())) == 550

    def test_random_free_cell_avoids_occupied(self, grid):
        """Sampled cells never land on occupied cells."""
        rng = random.Random(1)
        occupied = {Position(x, y) for x in range(25) for y in range(11)}
        for _ in range(50):
            cell = grid.random_free_cell(rng, occupied, 100, exhaustive=True)
            assert cell is not None
            assert cell not in occupied

    def test_exhaustive_finds_last_free_cell(self):
        """The fallback scan finds a single remaining free cell."""
        small = Grid(3, 3)
        occupied = set(small.cells()) - {Position(2, 1)}
        cell = small.random_free_cell(random.Random(0), occupied, 0, exhaustive=True)
        assert cell == Position(2, 1)

    def test_no_free_cell_returns_none(self):
        """A full grid yields None."""
        small = Grid(2, 2)
        occupied = set(small.cells())
        assert small.random_free_cell(random.Random(0), occupied, 10, exhaustive=True) is None
        assert small.random_free_cell(random.Random(0), occupied, 10) is None
