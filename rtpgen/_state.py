"""Per-stream sequence and timestamp counters."""

from __future__ import annotations

from dataclasses import dataclass, field

from ._types import validate_rate
from ._utils import RTP_VIDEO_CLOCK_RATE, SEQUENCE_MODULUS, TIMESTAMP_MODULUS


def timestamp_increment(rate: float) -> int:
    """Ticks of the 90 kHz clock between packets sent at rate per second."""
    return int(RTP_VIDEO_CLOCK_RATE / validate_rate(rate))


@dataclass
class StreamState:
    """
    Mutable counters for one stream.

    The timestamp advances by a fixed step derived from the configured rate,
    not from elapsed time. The cadence stays regular under scheduling jitter
    and drifts from wall-clock time over long runs.
    """

    rate: float
    sequence: int = 0
    timestamp: int = 0
    increment: int = field(init=False)

    def __post_init__(self) -> None:
        self.increment = timestamp_increment(self.rate)
        self.sequence %= SEQUENCE_MODULUS
        self.timestamp %= TIMESTAMP_MODULUS

    def advance(self) -> None:
        """Step both counters for the next packet."""
        self.sequence = (self.sequence + 1) % SEQUENCE_MODULUS
        self.timestamp = (self.timestamp + self.increment) % TIMESTAMP_MODULUS


__all__ = ["StreamState", "timestamp_increment"]
