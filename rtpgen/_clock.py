"""
Clock abstraction.

The generator reads time through a single capability so the core never
branches on platform. ``SystemClock`` is backed by :mod:`time`; tests
substitute their own implementation.
"""

from __future__ import annotations

import abc
import time
from typing import Tuple

from ._utils import NANOSECONDS_PER_SECOND


class Clock(abc.ABC):
    """Source of wall-clock and monotonic time."""

    @abc.abstractmethod
    def now(self) -> Tuple[int, int]:
        """
        Return the current wall-clock time.

        Returns:
            Tuple of (seconds since the Unix epoch, nanoseconds fraction)
        """
        ...

    @abc.abstractmethod
    def monotonic_ns(self) -> int:
        """Return a monotonic tick count in nanoseconds."""
        ...

    def unix_timestamp_us(self) -> int:
        """Current Unix time in microseconds."""
        seconds, fraction = self.now()
        return seconds * 1_000_000 + fraction // 1000


class SystemClock(Clock):
    """Clock backed by the interpreter's time functions."""

    def now(self) -> Tuple[int, int]:
        return divmod(time.time_ns(), NANOSECONDS_PER_SECOND)

    def monotonic_ns(self) -> int:
        return time.monotonic_ns()

    def __repr__(self) -> str:
        return "<SystemClock>"


__all__ = ["Clock", "SystemClock"]
