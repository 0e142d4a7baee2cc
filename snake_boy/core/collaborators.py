"""
Collaborators
=============

Interfaces the engine talks to but does not implement itself: input,
rendering, audio cues, and high score persistence. Null implementations let
the engine run headless; InputQueue is the stock input implementation that
front ends feed key presses into.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING, Deque, Iterable, Optional, Sequence

from snake_boy.core.grid import Direction

if TYPE_CHECKING:
    from snake_boy.core.state_snapshot import GameSnapshot


class AudioCue(Enum):
    """Sound cues the engine emits."""
    MOVE = "move"
    EAT = "eat"
    GAME_OVER = "game_over"
    START = "start"
    POWER_UP = "power_up"
    LEVEL_UP = "level_up"


class InputSource(ABC):
    """Supplies the heading for the next tick."""

    @abstractmethod
    def get_pending_direction(self) -> Direction:
        """Latest queued direction, or the current one if nothing is queued."""

    def reset(self) -> None:
        """Forget queued input. Called when the session resets."""


class Renderer(ABC):
    @abstractmethod
    def render(self, snapshot: "GameSnapshot") -> None:
        """Draw one immutable snapshot. Must not block."""


class AudioPlayer(ABC):
    @abstractmethod
    def play(self, cue: AudioCue) -> None:
        """Fire-and-forget sound cue. Must not block."""


class HighScoreStore(ABC):
    """Durable key-value storage for the high score."""

    @abstractmethod
    def load_high_score(self) -> int:
        """Stored high score, or 0 if none has been stored."""

    @abstractmethod
    def save_high_score(self, score: int) -> None:
        """Persist a new high score."""


class NullRenderer(Renderer):
    def render(self, snapshot: "GameSnapshot") -> None:
        pass


class NullAudioPlayer(AudioPlayer):
    def play(self, cue: AudioCue) -> None:
        pass


class InputQueue(InputSource):
    """
    Direction input with reversal protection.

    A queued direction that would reverse the current heading is dropped.
    Each call to `get_pending_direction` commits the queued direction, so
    at most one turn is applied per tick.
    """

    def __init__(self, initial: Direction = Direction.RIGHT):
        self._initial = initial
        self._current = initial
        self._next = initial

    @property
    def current_direction(self) -> Direction:
        return self._current

    @property
    def queued_direction(self) -> Direction:
        return self._next

    def queue_direction(self, direction: Direction) -> bool:
        """
        Queue a turn for the next tick.

        Returns:
            True if accepted, False if it would reverse the current heading.
        """
        if not isinstance(direction, Direction):
            raise ValueError(f"Not a Direction: {direction!r}")
        if self._current.is_opposite(direction):
            return False
        self._next = direction
        return True

    def get_pending_direction(self) -> Direction:
        self._current = self._next
        return self._current

    def reset(self) -> None:
        self._current = self._initial
        self._next = self._initial


class CheatCodeMatcher:
    """
    Watches a stream of key tokens for a fixed sequence.

    Tokens are lower-case names ("up", "down", "left", "right", "a", "b").
    """

    def __init__(self, sequence: Sequence[str]):
        if not sequence:
            raise ValueError("Cheat sequence must not be empty")
        self._sequence = tuple(token.lower() for token in sequence)
        self._recent: Deque[str] = deque(maxlen=len(self._sequence))

    @property
    def sequence(self) -> tuple:
        return self._sequence

    @property
    def recent(self) -> tuple:
        """Tokens seen since the last match, oldest first."""
        return tuple(self._recent)

    def feed(self, token: str) -> bool:
        """
        Record one key token.

        Returns:
            True when the most recent tokens complete the sequence.
        """
        self._recent.append(token.lower())
        if tuple(self._recent) == self._sequence:
            self._recent.clear()
            return True
        return False

    def feed_many(self, tokens: Iterable[str]) -> bool:
        """Feed tokens in order; True if the sequence completed at any point."""
        matched = False
        for token in tokens:
            matched = self.feed(token) or matched
        return matched

    def reset(self) -> None:
        self._recent.clear()


def direction_from_token(token: str) -> Optional[Direction]:
    """Map a key token to a direction, or None for non-direction tokens."""
    try:
        return Direction.from_name(token)
    except ValueError:
        return None
