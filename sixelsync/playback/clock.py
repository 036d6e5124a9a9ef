"""
SixelSync - Clocks
===================
Time source used by the pacer and the playback loop.

Pacing never reads the wall clock directly; it goes through a Clock so
tests can drive time by hand.
"""

import time
from typing import Protocol


class Clock(Protocol):
    """
    Abstract clock interface for frame pacing.

    Times are seconds on an arbitrary monotonic origin; only differences
    between readings are meaningful.
    """

    def get_time(self) -> float:
        """
        Get current clock time in seconds.

        Returns:
            Monotonic time in seconds
        """
        ...

    def sleep(self, seconds: float):
        """Suspend the caller for ``seconds`` (never negative)."""
        ...


class SystemClock:
    """
    Real clock backed by ``time.perf_counter()``.

    Sleeping only suspends the calling thread, so decode workers keep
    running while the loop waits.
    """

    def get_time(self) -> float:
        return time.perf_counter()

    def sleep(self, seconds: float):
        if seconds > 0:
            time.sleep(seconds)
