"""
Tests for food placement and food type selection.
"""

import pytest

from snake_boy.core.config_loader import load_config
from snake_boy.core.food import FoodEntity, FoodKind
from snake_boy.core.grid import Grid, Position
from snake_boy.core.scheduler import ManualClock


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def food(config, clock):
    return FoodEntity(config, clock, seed=7)


class TestTypeSelection:
    """Test the level-weighted type draw."""

    def test_level_one_bands(self, food):
        """At level 1 the bands are 0.7 / 0.2 / 0.1."""
        assert food.choose_kind(1, 0.0) is FoodKind.REGULAR
        assert food.choose_kind(1, 0.69) is FoodKind.REGULAR
        assert food.choose_kind(1, 0.7) is FoodKind.BONUS
        assert food.choose_kind(1, 0.89) is FoodKind.BONUS
        assert food.choose_kind(1, 0.9) is FoodKind.SPECIAL

    def test_higher_levels_shrink_regular_band(self, food):
        """Level 5 moves 0.12 of the regular band to bonus."""
        assert food.level_bonus(5) == pytest.approx(0.12)
        assert food.choose_kind(5, 0.57) is FoodKind.REGULAR
        assert food.choose_kind(5, 0.6) is FoodKind.BONUS
        assert food.choose_kind(5, 0.95) is FoodKind.SPECIAL

    def test_level_bonus_capped(self, food):
        """The shrink never exceeds the cap."""
        assert food.level_bonus(1) == 0.0
        assert food.level_bonus(50) == pytest.approx(0.3)

    def test_values(self, food):
        """Each kind carries its configured value."""
        assert food.value_of(FoodKind.REGULAR) == 10
        assert food.value_of(FoodKind.BONUS) == 20
        assert food.value_of(FoodKind.SPECIAL) == 50


class TestPlacement:
    """Test where food lands."""

    def test_no_food_until_placed(self, food):
        """A fresh entity has no food."""
        assert food.item is None
        assert food.value == 0

    def test_avoids_occupied_cells(self, food):
        """Placed food never overlaps occupied cells."""
        occupied = {Position(x, 5) for x in range(25)}
        for _ in range(50):
            assert food.place(occupied)
            assert food.position not in occupied

    def test_value_matches_kind(self, food):
        """The item's value is the value of its kind."""
        food.place(set())
        assert food.value == food.value_of(food.item.kind)

    def test_last_free_cell(self, food):
        """With one free cell left, food lands on it."""
        grid = Grid(25, 22)
        occupied = set(grid.cells()) - {Position(12, 13)}
        assert food.place(occupied)
        assert food.position == Position(12, 13)

    def test_full_grid_leaves_no_food(self, food):
        """With no free cell, placement fails and the grid has no food."""
        food.place(set())
        assert not food.place(set(Grid(25, 22).cells()))
        assert food.item is None

    def test_place_at(self, food):
        """Scripted placement sets kind and value."""
        item = food.place_at(Position(3, 4), FoodKind.SPECIAL)
        assert food.position == Position(3, 4)
        assert item.value == 50

    def test_place_at_outside_grid(self, food):
        """Scripted placement outside the grid raises."""
        with pytest.raises(ValueError):
            food.place_at(Position(25, 0))

    def test_seeded_placement_is_reproducible(self, config, clock):
        """Equal seeds place food identically."""
        a = FoodEntity(config, clock, seed=3)
        b = FoodEntity(config, clock, seed=3)
        for _ in range(10):
            a.place(set(), level=4)
            b.place(set(), level=4)
            assert a.item == b.item


class TestAnimation:
    """Test the cosmetic frame counter."""

    def test_frame_cycles(self, food, clock):
        """The frame advances once per period and wraps at four."""
        for expected in (1, 2, 3, 0):
            clock.advance(201)
            food.update()
            assert food.animation_frame == expected

    def test_frame_holds_within_period(self, food, clock):
        """No advance before the period elapses."""
        clock.advance(200)
        food.update()
        assert food.animation_frame == 0
