"""
Rate pacing for the transmission loop.

The scheduler suspends the caller for one inter-packet interval. The wait
is measured against a monotonic deadline, so an early wake-up (a signal, a
spurious return) only sleeps for what is left of the interval. Overruns are
not compensated on the next iteration.

A single underlying wait never exceeds ``threading.TIMEOUT_MAX``; longer
intervals are covered by the same resume loop.
"""

from __future__ import annotations

import threading
from typing import Optional

from ._clock import Clock, SystemClock
from ._types import validate_rate
from ._utils import NANOSECONDS_PER_SECOND


class RateScheduler:
    """
    Paces packets to a fixed rate.

    Args:
        rate: Packets per second, 0 < rate <= 10000
        clock: Time source, defaults to SystemClock
        cancel: Event that aborts a wait in progress when set
    """

    def __init__(
        self,
        rate: float,
        clock: Optional[Clock] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        self.rate = validate_rate(rate)
        self.interval_ns = round(NANOSECONDS_PER_SECOND / self.rate)
        self.clock = clock or SystemClock()
        self.cancel = cancel if cancel is not None else threading.Event()

    @property
    def interval(self) -> float:
        """Inter-packet interval in seconds."""
        return self.interval_ns / NANOSECONDS_PER_SECOND

    def wait(self) -> bool:
        """
        Sleep for one interval.

        Returns:
            False if cancellation was requested before the interval elapsed,
            True otherwise
        """
        deadline = self.clock.monotonic_ns() + self.interval_ns
        remaining = self.interval_ns
        while remaining > 0:
            timeout = min(remaining / NANOSECONDS_PER_SECOND, threading.TIMEOUT_MAX)
            if self.cancel.wait(timeout):
                return False
            remaining = deadline - self.clock.monotonic_ns()
        return True

    def __repr__(self) -> str:
        return f"<RateScheduler(rate={self.rate:g}/s, interval={self.interval_ns} ns)>"


__all__ = ["RateScheduler"]
