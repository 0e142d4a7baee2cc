"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import yaml


FOOD_KINDS = ("regular", "bonus", "special")
CHEAT_TOKENS = ("up", "down", "left", "right", "a", "b")


@dataclass(frozen=True)
class GridConfig:
    """Grid geometry."""
    width: int       # Cells across
    height: int      # Cells down
    cell_size: int   # Pixels per cell (renderers only)


@dataclass(frozen=True)
class SpeedConfig:
    """Tick interval tuning, all in milliseconds."""
    initial: int
    increment: int
    min: int
    max: int
    boost_factor: float
    slow_factor: float


@dataclass(frozen=True)
class SnakeConfig:
    """Initial snake placement and blink feedback."""
    initial_x: int
    initial_y: int
    initial_length: int
    blink_period: int
    game_over_blink: int


@dataclass(frozen=True)
class FoodTypeConfig:
    """A single food kind with its score value and base probability."""
    kind: str
    value: int
    probability: float


@dataclass(frozen=True)
class FoodConfig:
    """Food placement and type selection."""
    types: Tuple[FoodTypeConfig, ...]
    level_bonus_step: float
    level_bonus_cap: float
    animation_period: int

    def get_type(self, kind: str) -> FoodTypeConfig:
        """Get food type config by kind name."""
        for food_type in self.types:
            if food_type.kind == kind:
                return food_type
        raise ValueError(f"Unknown food kind: {kind}")


@dataclass(frozen=True)
class PowerUpConfig:
    """Power-up spawning and effect durations."""
    spawn_chance: float
    collect_window: int
    spawn_attempts: int
    collect_bonus: int
    animation_period: int
    shield_duration: int
    speed_boost_duration: int
    slow_mode_duration: int


@dataclass(frozen=True)
class LevelConfig:
    """Level progression and maze obstacle generation."""
    threshold: int
    max_level: int
    transition_duration: int
    obstacles_per_level: int
    max_obstacles: int
    base_wall_length: int
    max_wall_length: int
    edge_margin: int
    regenerate_from_level: int


@dataclass(frozen=True)
class ComboConfig:
    """Combo multiplier tuning."""
    window: int
    increment: float
    cap: float


@dataclass(frozen=True)
class ModeConfig:
    """Mode-specific settings."""
    time_attack_seconds: float
    time_attack_bonus_seconds: float


@dataclass(frozen=True)
class AbilityConfig:
    """Cooldowns for the manually triggered abilities."""
    shield_cooldown: int
    speed_boost_cooldown: int


@dataclass(frozen=True)
class CheatConfig:
    """Invulnerability cheat."""
    duration: int
    sequence: Tuple[str, ...]


@dataclass(frozen=True)
class StorageConfig:
    """High score persistence."""
    high_score_key: str
    high_score_path: str

    @property
    def resolved_path(self) -> Path:
        """High score file path with ~ and environment variables expanded."""
        return Path(os.path.expandvars(os.path.expanduser(self.high_score_path)))


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    grid: GridConfig
    speed: SpeedConfig
    snake: SnakeConfig
    food: FoodConfig
    power_ups: PowerUpConfig
    levels: LevelConfig
    combo: ComboConfig
    modes: ModeConfig
    abilities: AbilityConfig
    cheat: CheatConfig
    storage: StorageConfig

    @property
    def cell_count(self) -> int:
        """Total number of grid cells."""
        return self.grid.width * self.grid.height


def _parse_food_type(food_data: dict) -> FoodTypeConfig:
    """Parse a single food type from YAML."""
    return FoodTypeConfig(
        kind=str(food_data["kind"]).lower(),
        value=int(food_data["value"]),
        probability=float(food_data["probability"])
    )


def _parse_sequence(sequence_data: List) -> Tuple[str, ...]:
    """Parse the cheat key sequence from YAML."""
    tokens = tuple(str(token).lower() for token in sequence_data)
    for token in tokens:
        if token not in CHEAT_TOKENS:
            raise ValueError(f"Cheat sequence token must be one of {CHEAT_TOKENS}, got '{token}'")
    return tokens


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    grid = config.grid
    snake = config.snake

    if grid.width <= 0 or grid.height <= 0:
        raise ValueError(f"Grid must be at least 1x1, got {grid.width}x{grid.height}")

    # Initial body is laid out horizontally to the left of the head
    if snake.initial_length < 3:
        raise ValueError(f"initial_length must be at least 3, got {snake.initial_length}")
    tail_x = snake.initial_x - (snake.initial_length - 1)
    if tail_x < 0 or snake.initial_x >= grid.width:
        raise ValueError(
            f"Initial snake x range [{tail_x}, {snake.initial_x}] does not fit "
            f"grid width {grid.width}"
        )
    if not 0 <= snake.initial_y < grid.height:
        raise ValueError(
            f"Initial snake y ({snake.initial_y}) outside grid height {grid.height}"
        )

    kinds = tuple(t.kind for t in config.food.types)
    if sorted(kinds) != sorted(FOOD_KINDS):
        raise ValueError(f"Food types must be exactly {FOOD_KINDS}, got {kinds}")
    for food_type in config.food.types:
        if not 0.0 <= food_type.probability <= 1.0:
            raise ValueError(
                f"Probability for '{food_type.kind}' must be in [0, 1], "
                f"got {food_type.probability}"
            )
    total = sum(t.probability for t in config.food.types)
    if not math.isclose(total, 1.0, abs_tol=1e-6):
        raise ValueError(f"Food probabilities must sum to 1.0, got {total}")

    speed = config.speed
    if not 0 < speed.min <= speed.initial <= speed.max:
        raise ValueError(
            f"Speeds must satisfy 0 < min <= initial <= max, got "
            f"min={speed.min}, initial={speed.initial}, max={speed.max}"
        )

    if config.combo.cap < 1.0:
        raise ValueError(f"combo.cap must be >= 1.0, got {config.combo.cap}")

    if config.levels.max_level < 1:
        raise ValueError(f"max_level must be >= 1, got {config.levels.max_level}")

    # The longest wall must fit between the edge margins on both axes
    levels = config.levels
    span = levels.max_wall_length + 2 * levels.edge_margin
    if span > min(grid.width, grid.height):
        raise ValueError(
            f"Grid {grid.width}x{grid.height} too small for walls of length "
            f"{levels.max_wall_length} with edge margin {levels.edge_margin}"
        )

    if not 0.0 <= config.power_ups.spawn_chance <= 1.0:
        raise ValueError(f"spawn_chance must be in [0, 1], got {config.power_ups.spawn_chance}")


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    grid_data = raw["grid"]
    grid = GridConfig(
        width=int(grid_data["width"]),
        height=int(grid_data["height"]),
        cell_size=int(grid_data.get("cell_size", 16))
    )

    speed_data = raw["speed"]
    speed = SpeedConfig(
        initial=int(speed_data["initial"]),
        increment=int(speed_data["increment"]),
        min=int(speed_data["min"]),
        max=int(speed_data.get("max", 300)),
        boost_factor=float(speed_data.get("boost_factor", 0.5)),
        slow_factor=float(speed_data.get("slow_factor", 1.5))
    )

    snake_data = raw["snake"]
    snake = SnakeConfig(
        initial_x=int(snake_data["initial_x"]),
        initial_y=int(snake_data["initial_y"]),
        initial_length=int(snake_data.get("initial_length", 3)),
        blink_period=int(snake_data.get("blink_period", 100)),
        game_over_blink=int(snake_data.get("game_over_blink", 3000))
    )

    food_data = raw["food"]
    food = FoodConfig(
        types=tuple(_parse_food_type(t) for t in food_data["types"]),
        level_bonus_step=float(food_data.get("level_bonus_step", 0.03)),
        level_bonus_cap=float(food_data.get("level_bonus_cap", 0.3)),
        animation_period=int(food_data.get("animation_period", 200))
    )

    power_data = raw["power_ups"]
    durations = power_data["durations"]
    power_ups = PowerUpConfig(
        spawn_chance=float(power_data["spawn_chance"]),
        collect_window=int(power_data["collect_window"]),
        spawn_attempts=int(power_data.get("spawn_attempts", 20)),
        collect_bonus=int(power_data.get("collect_bonus", 20)),
        animation_period=int(power_data.get("animation_period", 150)),
        shield_duration=int(durations["shield"]),
        speed_boost_duration=int(durations["speed_boost"]),
        slow_mode_duration=int(durations["slow_mode"])
    )

    level_data = raw["levels"]
    levels = LevelConfig(
        threshold=int(level_data["threshold"]),
        max_level=int(level_data["max_level"]),
        transition_duration=int(level_data.get("transition_duration", 1500)),
        obstacles_per_level=int(level_data.get("obstacles_per_level", 2)),
        max_obstacles=int(level_data.get("max_obstacles", 10)),
        base_wall_length=int(level_data.get("base_wall_length", 2)),
        max_wall_length=int(level_data.get("max_wall_length", 6)),
        edge_margin=int(level_data.get("edge_margin", 2)),
        regenerate_from_level=int(level_data.get("regenerate_from_level", 3))
    )

    combo_data = raw["combo"]
    combo = ComboConfig(
        window=int(combo_data["window"]),
        increment=float(combo_data["increment"]),
        cap=float(combo_data["cap"])
    )

    mode_data = raw.get("modes", {})
    modes = ModeConfig(
        time_attack_seconds=float(mode_data.get("time_attack_seconds", 30)),
        time_attack_bonus_seconds=float(mode_data.get("time_attack_bonus_seconds", 3))
    )

    ability_data = raw.get("abilities", {})
    abilities = AbilityConfig(
        shield_cooldown=int(ability_data.get("shield_cooldown", 10000)),
        speed_boost_cooldown=int(ability_data.get("speed_boost_cooldown", 5000))
    )

    cheat_data = raw.get("cheat", {})
    cheat = CheatConfig(
        duration=int(cheat_data.get("duration", 10000)),
        sequence=_parse_sequence(cheat_data.get(
            "sequence", ["up", "up", "down", "down", "left", "right", "left", "right", "b", "a"]
        ))
    )

    storage_data = raw.get("storage", {})
    storage = StorageConfig(
        high_score_key=str(storage_data.get("high_score_key", "snakeBoyHighScore")),
        high_score_path=str(storage_data.get("high_score_path", "~/.snake_boy/highscore.json"))
    )

    config = GameConfig(
        grid=grid,
        speed=speed,
        snake=snake,
        food=food,
        power_ups=power_ups,
        levels=levels,
        combo=combo,
        modes=modes,
        abilities=abilities,
        cheat=cheat,
        storage=storage
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
