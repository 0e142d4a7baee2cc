"""
Scheduler
=========

A table of named, cancellable timers driven by a single poll loop.

Every timed behaviour in the engine (tick cadence, combo reset, effect
expiry, wall-pass expiry, blink feedback, cheat expiry) is an entry in one
Scheduler. Nothing fires on its own: the driver calls `run_pending()` and
due callbacks run there, one at a time, in deadline order. Cancelling an
entry is just removing it from the table, so a reset can never be raced by a
stale callback.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Wall clock in milliseconds from an arbitrary origin."""
    return time.monotonic() * 1000.0


class ManualClock:
    """
    Clock that only moves when told to.

    Used by tests and headless runs to drive every timing rule without sleeping.
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    @property
    def now(self) -> float:
        return self._now

    def advance(self, ms: float) -> float:
        """Move time forward and return the new time."""
        if ms < 0:
            raise ValueError(f"Cannot move a clock backwards ({ms} ms)")
        self._now += ms
        return self._now

    def set(self, now: float) -> None:
        if now < self._now:
            raise ValueError(f"Cannot move a clock backwards ({self._now} -> {now})")
        self._now = float(now)


@dataclass
class TimerHandle:
    """A pending timer entry."""
    name: str
    deadline: float
    callback: Callable[[], None]
    interval: Optional[float] = None  # Set for repeating entries
    sequence: int = 0                 # Tie-break for equal deadlines

    @property
    def repeating(self) -> bool:
        return self.interval is not None


class Scheduler:
    """
    Named timer table.

    Scheduling a name that is already pending replaces the old entry, so
    "re-arm" is a single call.
    """

    def __init__(self, clock: Optional[Clock] = None):
        """
        Initialize scheduler.

        Args:
            clock: Callable returning the current time in milliseconds.
                Uses the monotonic wall clock if None.
        """
        self._clock: Clock = clock if clock is not None else monotonic_ms
        self._timers: Dict[str, TimerHandle] = {}
        # name -> (handle, remaining ms) for entries frozen by suspend()
        self._suspended: Dict[str, Tuple[TimerHandle, float]] = {}
        self._sequence = 0

    @property
    def clock(self) -> Clock:
        return self._clock

    def now(self) -> float:
        """Current time in milliseconds."""
        return self._clock()

    def schedule(self, name: str, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """
        Arm a one-shot timer `delay` ms from now, replacing any entry of the same name.
        """
        if delay < 0:
            raise ValueError(f"Timer '{name}' delay must be >= 0, got {delay}")
        return self._add(TimerHandle(name, self.now() + delay, callback))

    def schedule_repeating(
        self,
        name: str,
        interval: float,
        callback: Callable[[], None]
    ) -> TimerHandle:
        """Arm a timer that fires every `interval` ms until cancelled."""
        if interval <= 0:
            raise ValueError(f"Timer '{name}' interval must be > 0, got {interval}")
        return self._add(TimerHandle(name, self.now() + interval, callback, interval))

    def _add(self, handle: TimerHandle) -> TimerHandle:
        self._sequence += 1
        handle.sequence = self._sequence
        self._suspended.pop(handle.name, None)
        self._timers[handle.name] = handle
        return handle

    def cancel(self, name: str) -> bool:
        """Remove a pending or suspended entry. Returns True if one existed."""
        suspended = self._suspended.pop(name, None) is not None
        return self._timers.pop(name, None) is not None or suspended

    def cancel_many(self, names: Iterable[str]) -> None:
        for name in names:
            self.cancel(name)

    def cancel_prefix(self, prefix: str) -> None:
        """Remove every entry whose name starts with `prefix`."""
        names = [n for n in list(self._timers) + list(self._suspended) if n.startswith(prefix)]
        self.cancel_many(names)

    def cancel_all(self) -> None:
        self._timers.clear()
        self._suspended.clear()

    def suspend(self, names: Iterable[str]) -> List[str]:
        """
        Freeze pending entries so they cannot fire, keeping their remaining time.

        Returns:
            Names that were actually suspended.
        """
        now = self.now()
        frozen = []
        for name in names:
            handle = self._timers.pop(name, None)
            if handle is None:
                continue
            self._suspended[name] = (handle, max(0.0, handle.deadline - now))
            frozen.append(name)
        return frozen

    def resume_suspended(self) -> List[str]:
        """Re-arm every suspended entry with the time it had left."""
        now = self.now()
        resumed = []
        for name, (handle, remaining) in list(self._suspended.items()):
            handle.deadline = now + remaining
            self._add(handle)
            resumed.append(name)
        self._suspended.clear()
        return resumed

    def is_suspended(self, name: str) -> bool:
        return name in self._suspended

    def is_pending(self, name: str) -> bool:
        return name in self._timers

    def remaining(self, name: str) -> Optional[float]:
        """Milliseconds until the entry fires, or None if neither pending nor suspended."""
        handle = self._timers.get(name)
        if handle is not None:
            return max(0.0, handle.deadline - self.now())
        if name in self._suspended:
            return self._suspended[name][1]
        return None

    def deadline(self, name: str) -> Optional[float]:
        """Absolute time the entry fires, or None if not pending."""
        handle = self._timers.get(name)
        return handle.deadline if handle is not None else None

    def pending(self) -> List[str]:
        """Names of all pending entries in firing order."""
        ordered = sorted(self._timers.values(), key=lambda h: (h.deadline, h.sequence))
        return [h.name for h in ordered]

    def next_deadline(self) -> Optional[float]:
        """Earliest pending deadline, or None if the table is empty."""
        if not self._timers:
            return None
        return min(h.deadline for h in self._timers.values())

    def run_pending(self) -> int:
        """
        Fire every entry whose deadline has passed.

        The table is re-read after each callback, so a callback that cancels
        or re-arms another entry is honoured in the same pass.

        Returns:
            Number of callbacks fired.
        """
        fired = 0
        now = self.now()
        # Entries armed by callbacks during this pass wait for the next one
        limit = self._sequence

        while True:
            due = [
                h for h in self._timers.values()
                if h.deadline <= now and h.sequence <= limit
            ]
            if not due:
                break
            handle = min(due, key=lambda h: (h.deadline, h.sequence))

            if handle.repeating:
                handle.deadline += handle.interval
                # Skip missed periods rather than firing a burst
                if handle.deadline <= now:
                    missed = int((now - handle.deadline) // handle.interval) + 1
                    handle.deadline += missed * handle.interval
            else:
                del self._timers[handle.name]

            handle.callback()
            fired += 1

        return fired
