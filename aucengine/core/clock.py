"""
Time sources for the ledger.

Prices are computed from elapsed seconds, so the ledger never reads the
wall clock directly; it asks an injected clock. Production code uses
SystemClock, tests use ManualClock to pin time exactly.
"""

import threading
import time
from typing import Protocol


class Clock(Protocol):
    """Anything that can report the current time in whole seconds."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock seconds, never moving backwards within one process."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            current = int(time.time())
            if current < self._last:
                current = self._last
            self._last = current
            return current


class ManualClock:
    """
    Clock that only moves when told to.

    Attributes:
        current: Current timestamp in seconds
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"start must be >= 0, got {start}")
        self.current = start

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> int:
        """Move time forward and return the new timestamp."""
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards by {seconds}s")
        self.current += seconds
        return self.current

    def set(self, timestamp: int) -> None:
        """Jump to an absolute timestamp (not earlier than now)."""
        if timestamp < self.current:
            raise ValueError(f"Cannot move clock backwards: {timestamp} < {self.current}")
        self.current = timestamp

    def __repr__(self) -> str:
        return f"ManualClock(current={self.current})"
