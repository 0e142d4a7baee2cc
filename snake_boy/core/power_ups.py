"""
Power-Ups
=========

Power-up placement and collection, and the three timed effects they grant.

Effects:
- SHIELD: independent of the others (the wall pass itself lives on the snake)
- SPEED_BOOST / SLOW_MODE: mutually exclusive; activating one cancels the other
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Dict, Optional

from snake_boy.core.config_loader import GameConfig, get_config
from snake_boy.core.grid import Grid, Position
from snake_boy.core.scheduler import Scheduler

logger = logging.getLogger(__name__)

ANIMATION_FRAMES = 4
POWER_UP_WINDOW_TIMER = "power_up.window"


class PowerUpKind(Enum):
    SHIELD = "shield"
    SPEED_BOOST = "speed_boost"
    SLOW_MODE = "slow_mode"

    @property
    def timer_name(self) -> str:
        """Scheduler entry that expires this effect."""
        return f"effect.{self.value}"


@dataclass(frozen=True)
class PowerUp:
    """A power-up waiting on the grid to be collected."""
    position: Position
    kind: PowerUpKind
    active: bool


@dataclass(frozen=True)
class ActiveEffects:
    """Snapshot of the three effect flags and when each one ends."""
    shield: bool = False
    speed_boost: bool = False
    slow_mode: bool = False
    shield_expires_at: Optional[float] = None
    speed_boost_expires_at: Optional[float] = None
    slow_mode_expires_at: Optional[float] = None

    @property
    def any(self) -> bool:
        return self.shield or self.speed_boost or self.slow_mode


class PowerUpManager:
    """
    Owns the (at most one) power-up on the grid and the active effects.

    Effect expiry is scheduled on the shared Scheduler under
    `effect.<kind>` and the collection window under `power_up.window`, so
    cancelling those entries is all a reset needs.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize power-up manager.

        Args:
            scheduler: Shared timer table for effect expiry.
            config: Game configuration. Uses default if None.
            seed: Random seed. Random if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._scheduler = scheduler
        self._rng = random.Random(seed)
        self._grid = Grid(config.grid.width, config.grid.height)

        settings = config.power_ups
        self._durations: Dict[PowerUpKind, int] = {
            PowerUpKind.SHIELD: settings.shield_duration,
            PowerUpKind.SPEED_BOOST: settings.speed_boost_duration,
            PowerUpKind.SLOW_MODE: settings.slow_mode_duration,
        }

        self._power_up: Optional[PowerUp] = None
        # kind -> expiry time, present only while the effect is active
        self._effects: Dict[PowerUpKind, float] = {}

        self._animation_frame = 0
        self._last_frame_time = scheduler.now()

    def reset(self) -> None:
        """Remove the on-grid power-up and end every effect."""
        self._power_up = None
        self._scheduler.cancel(POWER_UP_WINDOW_TIMER)
        self._scheduler.cancel_many(kind.timer_name for kind in PowerUpKind)
        self._effects.clear()

    @property
    def power_up(self) -> Optional[PowerUp]:
        return self._power_up

    @property
    def active(self) -> bool:
        """True while a power-up is on the grid waiting to be collected."""
        return self._power_up is not None and self._power_up.active

    @property
    def position(self) -> Optional[Position]:
        return self._power_up.position if self.active else None

    @property
    def animation_frame(self) -> int:
        return self._animation_frame

    @property
    def effects(self) -> ActiveEffects:
        return ActiveEffects(
            shield=PowerUpKind.SHIELD in self._effects,
            speed_boost=PowerUpKind.SPEED_BOOST in self._effects,
            slow_mode=PowerUpKind.SLOW_MODE in self._effects,
            shield_expires_at=self._expiry(PowerUpKind.SHIELD),
            speed_boost_expires_at=self._expiry(PowerUpKind.SPEED_BOOST),
            slow_mode_expires_at=self._expiry(PowerUpKind.SLOW_MODE),
        )

    def _expiry(self, kind: PowerUpKind) -> Optional[float]:
        """When the effect ends, following its timer if it was suspended and resumed."""
        if kind not in self._effects:
            return None
        remaining = self._scheduler.remaining(kind.timer_name)
        if remaining is None:
            return self._effects[kind]
        return self._scheduler.now() + remaining

    def duration_of(self, kind: PowerUpKind) -> int:
        return self._durations[kind]

    def is_effect_active(self, kind: PowerUpKind) -> bool:
        return kind in self._effects

    def has_active_effect(self) -> bool:
        """True if any effect is running. Gates the manual abilities."""
        return bool(self._effects)

    def is_at(self, position: Position) -> bool:
        return self.active and self._power_up.position == position

    def try_spawn(
        self,
        occupied: AbstractSet[Position],
        food_position: Optional[Position]
    ) -> bool:
        """
        Maybe place a power-up.

        Nothing happens if one is already on the grid or the spawn roll
        fails. Otherwise a bounded number of random cells are tried; if none
        is free the spawn is skipped.

        Returns:
            True if a power-up was placed.
        """
        settings = self._config.power_ups
        if self.active or self._rng.random() >= settings.spawn_chance:
            return False

        blocked = set(occupied)
        if food_position is not None:
            blocked.add(food_position)

        position = self._grid.random_free_cell(self._rng, blocked, settings.spawn_attempts)
        if position is None:
            logger.warning("No free cell for a power-up after %d attempts", settings.spawn_attempts)
            return False

        kind = self._rng.choice(list(PowerUpKind))
        self._put(position, kind)
        logger.debug("Spawned %s power-up at %s", kind.value, tuple(position))
        return True

    def place_at(self, position: Position, kind: PowerUpKind) -> PowerUp:
        """Put a power-up on a specific cell, replacing any on the grid."""
        if not self._grid.contains(position):
            raise ValueError(f"Power-up position {tuple(position)} is outside the grid")
        return self._put(position, kind)

    def _put(self, position: Position, kind: PowerUpKind) -> PowerUp:
        self._power_up = PowerUp(position=position, kind=kind, active=True)
        self._animation_frame = 0
        self._scheduler.schedule(
            POWER_UP_WINDOW_TIMER, self._config.power_ups.collect_window, self._expire_uncollected
        )
        return self._power_up

    @property
    def window_remaining(self) -> Optional[float]:
        """Milliseconds left to collect the on-grid power-up, or None."""
        if not self.active:
            return None
        return self._scheduler.remaining(POWER_UP_WINDOW_TIMER)

    def collect(self) -> Optional[PowerUpKind]:
        """
        Pick up the on-grid power-up and start its effect.

        Returns:
            The collected kind, or None if nothing was on the grid.
        """
        if not self.active:
            return None

        kind = self._power_up.kind
        self._power_up = None
        self._scheduler.cancel(POWER_UP_WINDOW_TIMER)
        self.activate(kind)
        logger.debug("Collected %s power-up", kind.value)
        return kind

    def activate(self, kind: PowerUpKind) -> None:
        """Start (or restart) the effect for `kind`."""
        if kind is PowerUpKind.SHIELD:
            self.activate_shield()
        elif kind is PowerUpKind.SPEED_BOOST:
            self.activate_speed_boost()
        elif kind is PowerUpKind.SLOW_MODE:
            self.activate_slow_mode()
        else:
            raise ValueError(f"Unknown power-up kind: {kind!r}")

    def activate_shield(self) -> None:
        self._start_effect(PowerUpKind.SHIELD)

    def activate_speed_boost(self) -> None:
        self._end_effect(PowerUpKind.SLOW_MODE)
        self._start_effect(PowerUpKind.SPEED_BOOST)

    def activate_slow_mode(self) -> None:
        self._end_effect(PowerUpKind.SPEED_BOOST)
        self._start_effect(PowerUpKind.SLOW_MODE)

    def _start_effect(self, kind: PowerUpKind) -> None:
        duration = self._durations[kind]
        self._effects[kind] = self._scheduler.now() + duration
        self._scheduler.schedule(kind.timer_name, duration, lambda: self._expire_effect(kind))

    def _end_effect(self, kind: PowerUpKind) -> None:
        self._scheduler.cancel(kind.timer_name)
        self._effects.pop(kind, None)

    def _expire_effect(self, kind: PowerUpKind) -> None:
        self._effects.pop(kind, None)
        logger.debug("%s effect expired", kind.value)

    def _expire_uncollected(self) -> None:
        if self._power_up is not None:
            logger.debug("%s power-up expired uncollected", self._power_up.kind.value)
        self._power_up = None

    def update(self) -> None:
        """Advance the animation counter."""
        now = self._scheduler.now()
        if now - self._last_frame_time > self._config.power_ups.animation_period:
            self._animation_frame = (self._animation_frame + 1) % ANIMATION_FRAMES
            self._last_frame_time = now

