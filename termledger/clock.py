"""
clock.py - Time sources for maturity checks

Bonds mature at a unix timestamp. Components read the current time through a
clock with a single ``now() -> int`` method so that simulations and tests can
drive time explicitly.
"""

from __future__ import annotations
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Anything that can report the current unix time in whole seconds."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> int:
        return int(time.time())

    def __repr__(self):
        return "SystemClock()"


class ManualClock:
    """
    Logical clock that only moves when told to.

    Time can only move forward, never backward.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"Clock cannot start before the epoch: {start}")
        self._now = start

    def now(self) -> int:
        return self._now

    def advance_to(self, timestamp: int) -> None:
        """
        Move the clock to ``timestamp``.

        Raises:
            ValueError: If timestamp is before the current time
        """
        if timestamp < self._now:
            raise ValueError(
                f"Cannot move time backwards: {timestamp} < {self._now}"
            )
        self._now = timestamp

    def advance(self, seconds: int) -> None:
        """Move the clock forward by ``seconds``."""
        self.advance_to(self._now + seconds)

    def __repr__(self):
        return f"ManualClock(now={self._now})"
