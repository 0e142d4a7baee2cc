"""
Tests for configuration loading and validation.
"""

import os

import pytest
import yaml

from snake_boy.core.config_loader import get_config, load_config, reload_config


DEFAULT_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "snake_boy",
    "game_config.yaml"
)


@pytest.fixture
def raw():
    with open(DEFAULT_PATH, "r") as f:
        return yaml.safe_load(f)


def write_config(tmp_path, raw):
    path = tmp_path / "game_config.yaml"
    path.write_text(yaml.safe_dump(raw))
    return str(path)


class TestDefaults:
    """Test the shipped configuration."""

    def test_grid(self):
        """Default grid is 25 x 22 cells of 16 px."""
        config = load_config()
        assert (config.grid.width, config.grid.height, config.grid.cell_size) == (25, 22, 16)
        assert config.cell_count == 550

    def test_timing(self):
        """Default speed, combo, and power-up timings."""
        config = load_config()
        assert config.speed.initial == 150
        assert config.speed.increment == 3
        assert config.speed.min == 60
        assert config.combo.window == 3000
        assert config.combo.cap == 5.0
        assert config.power_ups.shield_duration == 5000
        assert config.power_ups.speed_boost_duration == 3000
        assert config.power_ups.slow_mode_duration == 5000

    def test_food_types(self):
        """Food kinds carry their values and probabilities."""
        food = load_config().food
        assert food.get_type("regular").value == 10
        assert food.get_type("bonus").probability == pytest.approx(0.2)
        assert food.get_type("special").value == 50
        with pytest.raises(ValueError):
            food.get_type("poison")

    def test_storage_path_expanded(self):
        """The high score path has ~ expanded."""
        assert "~" not in str(load_config().storage.resolved_path)

    def test_cached_config(self):
        """get_config returns the same object until reloaded."""
        first = get_config()
        assert get_config() is first
        assert reload_config() is not first


class TestValidation:
    """Test rejection of inconsistent configurations."""

    def test_missing_file(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_probabilities_must_sum_to_one(self, tmp_path, raw):
        """Food probabilities not summing to 1 are rejected."""
        raw["food"]["types"][0]["probability"] = 0.9
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw))

    def test_snake_must_fit(self, tmp_path, raw):
        """An initial body running off the grid is rejected."""
        raw["snake"]["initial_x"] = 1
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw))

    def test_speed_ordering(self, tmp_path, raw):
        """The initial speed must lie within [min, max]."""
        raw["speed"]["min"] = 200
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw))

    def test_walls_must_fit(self, tmp_path, raw):
        """Walls plus margins wider than the grid are rejected."""
        raw["grid"]["width"] = 8
        raw["grid"]["height"] = 8
        raw["snake"]["initial_x"] = 3
        raw["snake"]["initial_y"] = 3
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw))

    def test_unknown_cheat_token(self, tmp_path, raw):
        """Cheat sequences only use direction and A/B tokens."""
        raw["cheat"]["sequence"] = ["up", "start"]
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw))

    def test_optional_sections_default(self, tmp_path, raw):
        """Missing optional sections fall back to defaults."""
        for key in ("modes", "abilities", "cheat", "storage"):
            del raw[key]
        config = load_config(write_config(tmp_path, raw))
        assert config.modes.time_attack_seconds == 30
        assert config.abilities.shield_cooldown == 10000
        assert config.cheat.duration == 10000
        assert config.storage.high_score_key == "snakeBoyHighScore"
