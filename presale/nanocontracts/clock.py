import time
from typing import Protocol

from presale.nanocontracts.types import Timestamp


class Clock(Protocol):
    def now(self) -> Timestamp: ...


class SystemClock:
    """Wall clock in whole seconds."""

    def now(self) -> Timestamp:
        return Timestamp(int(time.time()))


class ManualClock:
    """Clock that only moves when told to, and never backwards."""

    def __init__(self, start: int) -> None:
        self._now = Timestamp(start)

    def now(self) -> Timestamp:
        return self._now

    def advance(self, seconds: int) -> Timestamp:
        if seconds < 0:
            raise ValueError("clock cannot go backwards")
        self._now = Timestamp(self._now + seconds)
        return self._now

    def set(self, timestamp: int) -> Timestamp:
        if timestamp < self._now:
            raise ValueError(f"clock cannot go back from {self._now} to {timestamp}")
        self._now = Timestamp(timestamp)
        return self._now
