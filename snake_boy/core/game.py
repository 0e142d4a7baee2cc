"""
Core Game
=========

Session state machine combining the snake, food, power-ups, levels, and
scoring into one tick-driven simulation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Set, Tuple

from snake_boy.core.collaborators import (
    AudioCue,
    AudioPlayer,
    HighScoreStore,
    InputQueue,
    InputSource,
    NullAudioPlayer,
    NullRenderer,
    Renderer,
)
from snake_boy.core.config_loader import GameConfig, get_config
from snake_boy.core.food import FoodEntity, FoodItem
from snake_boy.core.grid import Position
from snake_boy.core.levels import LevelManager
from snake_boy.core.power_ups import POWER_UP_WINDOW_TIMER, PowerUpKind, PowerUpManager
from snake_boy.core.scheduler import Clock, Scheduler
from snake_boy.core.scoring import ScoreManager
from snake_boy.core.snake import WALL_PASS_TIMER, SnakeEntity
from snake_boy.core.state_snapshot import GameSnapshot, SnapshotBuilder

logger = logging.getLogger(__name__)

TICK_TIMER = "tick"
COMBO_TIMER = "combo.reset"
CHEAT_TIMER = "cheat.expire"
ANIMATION_TIMER = "animation"

# Roughly one display frame
ANIMATION_INTERVAL = 1000.0 / 60.0


class GameStatus(Enum):
    START = "start"
    PLAYING = "playing"
    PAUSED = "paused"
    LEVELUP = "levelup"
    GAMEOVER = "gameover"


class GameMode(Enum):
    CLASSIC = "classic"
    TIME_ATTACK = "time_attack"
    MAZE = "maze"

    def next(self) -> "GameMode":
        """The mode after this one in the start-screen cycle."""
        modes = list(GameMode)
        return modes[(modes.index(self) + 1) % len(modes)]


@dataclass(frozen=True)
class TickResult:
    """What happened during one tick."""
    moved: bool
    eaten: Optional[FoodItem]
    points: int
    power_up: Optional[PowerUpKind]
    leveled_up: bool
    game_over: bool

    @staticmethod
    def skipped() -> "TickResult":
        return TickResult(False, None, 0, None, False, False)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


class GameStateMachine:
    """
    Main game orchestrator.

    Owns the session (status, mode, speed, combo, countdown, cheat flag)
    and the single Scheduler every timer lives in. Components are built here
    and only talk to each other through this class.

    Drive it by calling `update()` often (every frame); due timers fire there:
    - `tick`: one simulation step, re-armed with the effective speed
    - `animation`: cosmetic counters and the level transition
    - `combo.reset`, `cheat.expire`, effect and shield expiry
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        clock: Optional[Clock] = None,
        input_source: Optional[InputSource] = None,
        renderer: Optional[Renderer] = None,
        audio: Optional[AudioPlayer] = None,
        store: Optional[HighScoreStore] = None,
        seed: Optional[int] = None,
        animation_interval: float = ANIMATION_INTERVAL
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            clock: Millisecond clock. Monotonic wall clock if None.
            input_source: Direction input. A fresh InputQueue if None.
            renderer: Snapshot consumer. Discards snapshots if None.
            audio: Sound cue consumer. Silent if None.
            store: High score persistence. Not persisted if None.
            seed: Random seed for placement and obstacle layout.
            animation_interval: Milliseconds between animation steps.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._scheduler = Scheduler(clock)

        self._input: InputSource = input_source if input_source is not None else InputQueue()
        self._renderer: Renderer = renderer if renderer is not None else NullRenderer()
        self._audio: AudioPlayer = audio if audio is not None else NullAudioPlayer()

        # Initialize subsystems
        self._snake = SnakeEntity(self._scheduler, config)
        self._food = FoodEntity(config, self._scheduler.clock, _derive_seed(seed, 0))
        self._power_ups = PowerUpManager(self._scheduler, config, _derive_seed(seed, 1))
        self._levels = LevelManager(config, self._scheduler.clock, _derive_seed(seed, 2))
        self._scores = ScoreManager(store)
        self._snapshot_builder = SnapshotBuilder(config)

        # Session state
        self._status = GameStatus.START
        self._mode = GameMode.CLASSIC
        self._base_speed: int = config.speed.initial
        self._combo_multiplier: float = 1.0
        self._last_food_time: Optional[float] = None
        self._time_remaining: float = 0.0
        self._invulnerable = False
        self._frame_count = 0
        self._ability_used_at: Dict[PowerUpKind, float] = {}

        self._food.place(self._occupied_cells())

        self._scheduler.schedule_repeating(ANIMATION_TIMER, animation_interval, self.animate)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def mode(self) -> GameMode:
        return self._mode

    @property
    def snake(self) -> SnakeEntity:
        return self._snake

    @property
    def food(self) -> FoodEntity:
        return self._food

    @property
    def power_ups(self) -> PowerUpManager:
        return self._power_ups

    @property
    def levels(self) -> LevelManager:
        return self._levels

    @property
    def scores(self) -> ScoreManager:
        return self._scores

    @property
    def input_source(self) -> InputSource:
        return self._input

    @property
    def score(self) -> int:
        return self._scores.score

    @property
    def high_score(self) -> int:
        return self._scores.high_score

    @property
    def base_speed(self) -> int:
        """Tick interval before power-up modifiers (ms)."""
        return self._base_speed

    @property
    def combo_multiplier(self) -> float:
        return self._combo_multiplier

    @property
    def last_food_time(self) -> Optional[float]:
        return self._last_food_time

    @property
    def time_remaining(self) -> float:
        """Seconds left in TIME_ATTACK; 0 in other modes."""
        return self._time_remaining

    @property
    def invulnerable(self) -> bool:
        return self._invulnerable

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def effective_speed(self) -> float:
        """Tick interval after SPEED_BOOST / SLOW_MODE, clamped to [min, max]."""
        speed_config = self._config.speed
        speed = float(self._base_speed)
        effects = self._power_ups.effects
        if effects.speed_boost:
            speed *= speed_config.boost_factor
        if effects.slow_mode:
            speed *= speed_config.slow_factor
        return max(float(speed_config.min), min(float(speed_config.max), speed))

    @property
    def obstacles(self) -> FrozenSet[Position]:
        """Obstacles that block the snake; only maze mode has any."""
        if self._mode is GameMode.MAZE:
            return self._levels.obstacles
        return frozenset()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def update(self) -> int:
        """Fire every due timer. Call once per frame."""
        return self._scheduler.run_pending()

    def toggle_start_pause(self) -> None:
        """Start from START/GAMEOVER, pause while playing, resume while paused."""
        if self._status in (GameStatus.START, GameStatus.GAMEOVER):
            self.start()
        elif self._status is GameStatus.PLAYING:
            self.pause()
        elif self._status is GameStatus.PAUSED:
            self.resume()

    def toggle_pause(self) -> None:
        if self._status is GameStatus.PLAYING:
            self.pause()
        elif self._status is GameStatus.PAUSED:
            self.resume()

    def cycle_mode(self) -> bool:
        """Switch to the next mode. Only honoured on the start screen."""
        if self._status is not GameStatus.START:
            return False
        self._play(AudioCue.MOVE)
        self._set_mode(self._mode.next())
        self.render()
        return True

    def set_mode(self, mode: GameMode) -> bool:
        """Pick a mode directly. Only honoured on the start screen."""
        if self._status is not GameStatus.START:
            return False
        self._set_mode(mode)
        return True

    def _set_mode(self, mode: GameMode) -> None:
        self._mode = mode
        self._levels.maze_mode = mode is GameMode.MAZE
        if mode is not GameMode.MAZE:
            self._levels.clear_obstacles()
        logger.debug("Mode set to %s", mode.name)

    def start(self) -> bool:
        """
        Begin a session from START, or from GAMEOVER after an implicit reset.

        Returns:
            True if a session started.
        """
        if self._status is GameStatus.GAMEOVER:
            self.reset()
        if self._status is not GameStatus.START:
            return False

        self._status = GameStatus.PLAYING
        self._base_speed = self._config.speed.initial
        self._combo_multiplier = 1.0
        self._setup_mode()

        self._play(AudioCue.START)
        self._arm_tick()
        logger.info("Session started in %s mode", self._mode.name)
        return True

    def _setup_mode(self) -> None:
        if self._mode is GameMode.TIME_ATTACK:
            self._time_remaining = self._config.modes.time_attack_seconds
        elif self._mode is GameMode.MAZE:
            self._levels.generate_obstacles()
            self._clear_obstacle_conflicts()

    def pause(self) -> bool:
        """
        Stop ticking. Combo, effect, shield, cheat, and power-up window
        timers are frozen with their remaining time until `resume`.
        """
        if self._status is not GameStatus.PLAYING:
            return False

        self._status = GameStatus.PAUSED
        self._scheduler.cancel(TICK_TIMER)
        self._scheduler.suspend(self._session_timers())
        self._play(AudioCue.MOVE)
        logger.debug("Paused")
        return True

    def resume(self) -> bool:
        if self._status is not GameStatus.PAUSED:
            return False

        self._status = GameStatus.PLAYING
        self._scheduler.resume_suspended()
        self._arm_tick()
        self._play(AudioCue.MOVE)
        logger.debug("Resumed")
        return True

    def reset(self) -> None:
        """Return to the start screen with a fresh board. Mode and high score are kept."""
        self._scheduler.cancel_many((TICK_TIMER, COMBO_TIMER, CHEAT_TIMER))
        self._scheduler.cancel_many(self._session_timers())

        self._snake.reset()
        self._power_ups.reset()
        self._scores.reset_score()
        self._levels.reset()
        self._safe_call(self._input.reset)

        self._status = GameStatus.START
        self._base_speed = self._config.speed.initial
        self._combo_multiplier = 1.0
        self._last_food_time = None
        self._time_remaining = 0.0
        self._invulnerable = False
        self._ability_used_at.clear()

        self._food.place(self._occupied_cells())
        self._play(AudioCue.MOVE)
        logger.debug("Reset")

    def activate_speed_boost(self) -> bool:
        """Manual ability A. Needs PLAYING, no running effect, and the cooldown spent."""
        if not self._ability_ready(PowerUpKind.SPEED_BOOST):
            return False

        self._power_ups.activate_speed_boost()
        self._ability_used_at[PowerUpKind.SPEED_BOOST] = self._scheduler.now()
        self._play(AudioCue.POWER_UP)
        self._arm_tick()
        return True

    def activate_shield(self) -> bool:
        """Manual ability B. Needs PLAYING, no running effect, and the cooldown spent."""
        if not self._ability_ready(PowerUpKind.SHIELD):
            return False

        self._power_ups.activate_shield()
        self._snake.apply_shield(self._power_ups.duration_of(PowerUpKind.SHIELD))
        self._ability_used_at[PowerUpKind.SHIELD] = self._scheduler.now()
        self._play(AudioCue.POWER_UP)
        return True

    def _ability_ready(self, kind: PowerUpKind) -> bool:
        if self._status is not GameStatus.PLAYING or self._power_ups.has_active_effect():
            return False
        last_used = self._ability_used_at.get(kind)
        if last_used is None:
            return True
        return self._scheduler.now() - last_used >= self._ability_cooldown(kind)

    def _ability_cooldown(self, kind: PowerUpKind) -> int:
        abilities = self._config.abilities
        if kind is PowerUpKind.SHIELD:
            return abilities.shield_cooldown
        if kind is PowerUpKind.SPEED_BOOST:
            return abilities.speed_boost_cooldown
        raise ValueError(f"{kind.name} is not a manual ability")

    def activate_invulnerability(self) -> bool:
        """Cheat: collisions cannot end the game for a while. No-op if already active."""
        if self._invulnerable:
            return False

        duration = self._config.cheat.duration
        self._invulnerable = True
        self._snake.start_blinking(duration)
        self._scheduler.schedule(CHEAT_TIMER, duration, self._end_invulnerability)
        self._play(AudioCue.POWER_UP)
        self._play(AudioCue.START)
        logger.info("Invulnerability active for %d ms", duration)
        return True

    def _end_invulnerability(self) -> None:
        self._invulnerable = False
        logger.debug("Invulnerability ended")

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def tick(self) -> TickResult:
        """
        Advance the session by one grid cell.

        Food is eaten when the head is already on it at the start of the
        tick, so growth and scoring land one tick after the head reaches
        the food cell.
        """
        if self._status is not GameStatus.PLAYING:
            return TickResult.skipped()

        direction = self._safe_call(self._input.get_pending_direction)
        if direction is not None:
            self._snake.set_direction(direction)

        food = self._food.item
        will_eat = food is not None and self._snake.is_head_at(food.position)

        moved = self._snake.move(grow=will_eat, obstacles=self.obstacles)
        if not moved and not self._invulnerable:
            self._game_over()
            return TickResult(False, None, 0, None, False, True)

        collected = None
        if self._power_ups.is_at(self._snake.head):
            collected = self._collect_power_up()

        points = 0
        leveled_up = False
        if will_eat:
            points, leveled_up = self._eat(food)

        if self._mode is GameMode.TIME_ATTACK:
            self._time_remaining -= self.effective_speed / 1000.0
            if self._time_remaining <= 0:
                self._time_remaining = 0.0
                self._game_over()
                return TickResult(moved, food if will_eat else None, points, collected, leveled_up, True)

        self.render()
        return TickResult(moved, food if will_eat else None, points, collected, leveled_up, False)

    def _collect_power_up(self) -> Optional[PowerUpKind]:
        kind = self._power_ups.collect()
        if kind is None:
            return None

        if kind is PowerUpKind.SHIELD:
            self._snake.apply_shield(self._power_ups.duration_of(PowerUpKind.SHIELD))
        elif kind in (PowerUpKind.SPEED_BOOST, PowerUpKind.SLOW_MODE):
            pass  # Picked up by effective_speed at the next re-arm
        else:
            raise ValueError(f"Unknown power-up kind: {kind!r}")

        self._play(AudioCue.POWER_UP)
        self._scores.add_points(self._config.power_ups.collect_bonus)
        return kind

    def _eat(self, food: FoodItem) -> Tuple[int, bool]:
        """Score a food item and set up the next one. Returns (points, leveled_up)."""
        self._play(AudioCue.EAT)
        self.update_combo()

        points = round_half_up(food.value * self._combo_multiplier)
        self._scores.add_points(points)

        leveled_up = self._levels.check_level_up(self._scores.score)
        if leveled_up:
            self._level_up()
        else:
            self._food.place(self._occupied_cells(), self._levels.level)
            self.increase_speed()
            self._power_ups.try_spawn(self._snake.cells() | self.obstacles, self._food.position)

        if self._mode is GameMode.TIME_ATTACK:
            self._time_remaining += self._config.modes.time_attack_bonus_seconds

        return points, leveled_up

    def update_combo(self) -> float:
        """
        Register a food eaten now and return the new multiplier.

        While the reset timer from the previous food still has time left the
        multiplier grows by the increment up to the cap; otherwise it drops
        back to 1.0. The timer is re-armed either way. It is frozen during a
        pause, so paused time never counts against the window.
        """
        combo = self._config.combo
        now = self._scheduler.now()

        window_left = self._scheduler.remaining(COMBO_TIMER)
        if window_left is not None and window_left > 0:
            self._combo_multiplier = min(combo.cap, self._combo_multiplier + combo.increment)
        else:
            self._combo_multiplier = 1.0

        self._last_food_time = now
        self._scheduler.schedule(COMBO_TIMER, combo.window, self._reset_combo)
        return self._combo_multiplier

    def _reset_combo(self) -> None:
        self._combo_multiplier = 1.0

    def increase_speed(self) -> None:
        """Shorten the base interval by one increment and re-arm the tick."""
        speed = self._config.speed
        self._base_speed = max(speed.min, self._base_speed - speed.increment)
        if self._status is GameStatus.PLAYING:
            self._arm_tick()

    def _level_up(self) -> None:
        self._scheduler.cancel(TICK_TIMER)
        state = self._levels.level_up()
        if state is None:
            return

        self._status = GameStatus.LEVELUP
        self._play(AudioCue.LEVEL_UP)
        self._clear_obstacle_conflicts()
        self._food.place(self._occupied_cells(), state.level)
        logger.debug("Level %d transition started", state.level)

    def _clear_obstacle_conflicts(self) -> None:
        """
        Drop fresh obstacle cells that would trap the snake at once (its
        body and the cell just ahead of the head) or cover the waiting
        power-up. Food sitting on an obstacle is re-placed.
        """
        ahead = self._snake.next_head()
        blocked: Set[Position] = self._snake.cells()
        if self._snake.grid.contains(ahead):
            blocked.add(ahead)
        if self._power_ups.position is not None:
            blocked.add(self._power_ups.position)
        self._levels.remove_obstacles(blocked)

        food_position = self._food.position
        if food_position is not None and self._levels.is_obstacle(food_position):
            self._food.place(self._occupied_cells(), self._levels.level)

    def _game_over(self) -> None:
        self._status = GameStatus.GAMEOVER
        self._scheduler.cancel_many((TICK_TIMER, COMBO_TIMER))
        self._combo_multiplier = 1.0
        self._play(AudioCue.GAME_OVER)
        self._snake.start_blinking(self._config.snake.game_over_blink)
        logger.info("Game over with score %d (high score %d)", self.score, self.high_score)

    def animate(self) -> None:
        """
        Animation step, run on its own cadence in every status.

        Advances cosmetic counters and ends the level transition.
        """
        self._frame_count += 1
        self._food.update()
        self._power_ups.update()

        if self._levels.update_transition() and self._status is GameStatus.LEVELUP:
            self._status = GameStatus.PLAYING
            self._arm_tick()
            logger.debug("Level %d started", self._levels.level)

        self.render()

    def _arm_tick(self) -> None:
        self._scheduler.schedule(TICK_TIMER, self.effective_speed, self._on_tick)

    def _on_tick(self) -> None:
        self.tick()
        if self._status is GameStatus.PLAYING:
            self._arm_tick()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _session_timers(self) -> List[str]:
        """Timers that freeze with a pause."""
        names = [kind.timer_name for kind in PowerUpKind]
        names.extend((POWER_UP_WINDOW_TIMER, COMBO_TIMER, CHEAT_TIMER, WALL_PASS_TIMER))
        return names

    def _occupied_cells(self) -> Set[Position]:
        """Cells new food must avoid."""
        occupied = self._snake.cells() | set(self.obstacles)
        if self._power_ups.position is not None:
            occupied.add(self._power_ups.position)
        return occupied

    def snapshot(self) -> GameSnapshot:
        """Immutable view of the current state."""
        return self._snapshot_builder.build(
            status=self._status.name,
            mode=self._mode.name,
            snake=self._snake,
            food=self._food,
            power_ups=self._power_ups,
            levels=self._levels,
            scores=self._scores,
            combo_multiplier=self._combo_multiplier,
            time_remaining=self._time_remaining,
            invulnerable=self._invulnerable,
            frame_count=self._frame_count,
        )

    def render(self) -> None:
        self._safe_call(self._renderer.render, self.snapshot())

    def _play(self, cue: AudioCue) -> None:
        self._safe_call(self._audio.play, cue)

    def _safe_call(self, fn: Callable, *args):
        """Call a collaborator; failures are logged and swallowed."""
        try:
            return fn(*args)
        except Exception as e:
            logger.warning("Collaborator call %s failed: %s", getattr(fn, "__qualname__", fn), e)
            return None


def _derive_seed(seed: Optional[int], offset: int) -> Optional[int]:
    """Independent per-component seed, or None to stay unseeded."""
    if seed is None:
        return None
    return seed * 31 + offset
