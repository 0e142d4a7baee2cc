"""
Snake Boy Core - The game engine.

This module provides the tick-driven simulation and all supporting
systems (grid, timers, snake, food, power-ups, levels, scoring).

Main exports:
- GameStateMachine: Session orchestrator driven by `update()`
- Scheduler / ManualClock: Named timers and a test clock
- GameSnapshot: Immutable per-frame view for renderers
- InputQueue, Renderer, AudioPlayer, HighScoreStore: Front-end seams
- GameConfig: Configuration loaded from game_config.yaml
"""

from snake_boy.core.config_loader import GameConfig, get_config, load_config
from snake_boy.core.grid import Direction, Grid, Position
from snake_boy.core.scheduler import ManualClock, Scheduler
from snake_boy.core.snake import SnakeEntity
from snake_boy.core.food import FoodEntity, FoodItem, FoodKind
from snake_boy.core.power_ups import ActiveEffects, PowerUp, PowerUpKind, PowerUpManager
from snake_boy.core.levels import LevelManager, LevelState
from snake_boy.core.scoring import ScoreManager
from snake_boy.core.collaborators import (
    AudioCue,
    AudioPlayer,
    CheatCodeMatcher,
    HighScoreStore,
    InputQueue,
    InputSource,
    Renderer,
)
from snake_boy.core.storage import JsonHighScoreStore, MemoryHighScoreStore
from snake_boy.core.state_snapshot import CellType, GameSnapshot
from snake_boy.core.game import GameMode, GameStateMachine, GameStatus, TickResult

__all__ = [
    "GameConfig",
    "get_config",
    "load_config",
    "Direction",
    "Grid",
    "Position",
    "ManualClock",
    "Scheduler",
    "SnakeEntity",
    "FoodEntity",
    "FoodItem",
    "FoodKind",
    "ActiveEffects",
    "PowerUp",
    "PowerUpKind",
    "PowerUpManager",
    "LevelManager",
    "LevelState",
    "ScoreManager",
    "AudioCue",
    "AudioPlayer",
    "CheatCodeMatcher",
    "HighScoreStore",
    "InputQueue",
    "InputSource",
    "Renderer",
    "JsonHighScoreStore",
    "MemoryHighScoreStore",
    "CellType",
    "GameSnapshot",
    "GameMode",
    "GameStateMachine",
    "GameStatus",
    "TickResult",
]
