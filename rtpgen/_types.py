"""
Type definitions for the RTP stream generator.

This module centralizes configuration, state enums and the exception
hierarchy used throughout the package.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from ._utils import (
    DEFAULT_ADDRESS,
    DEFAULT_PORT,
    DEFAULT_RATE,
    MAX_RATE,
    NANOSECONDS_PER_SECOND,
    SEQUENCE_MODULUS,
)


# =============================================================================
# Exceptions
# =============================================================================


class RtpGenError(Exception):
    """Base exception for generator errors."""

    pass


class ConfigurationError(RtpGenError):
    """Raised when the stream configuration is invalid."""

    pass


class PayloadError(RtpGenError):
    """Raised when the payload cannot be loaded or exceeds capacity."""

    pass


class TransportError(RtpGenError):
    """Base exception for transport errors."""

    pass


class WriteError(TransportError):
    """Raised when sending a datagram fails."""

    pass


# =============================================================================
# Enums
# =============================================================================


class SSRCByteOrder(str, Enum):
    """
    Byte order used for the SSRC field.

    HOST reproduces the legacy generator, which copied the SSRC into the
    packet without conversion. NETWORK produces RTP-conformant output.
    """

    HOST = "host"
    NETWORK = "network"

    @property
    def struct_prefix(self) -> str:
        return "=" if self is SSRCByteOrder.HOST else "!"


class LoopState(Enum):
    """
    Lifecycle of the transmission loop.

    UNINITIALIZED → CONFIGURED → STREAMING → TERMINATED
    """

    UNINITIALIZED = auto()
    CONFIGURED = auto()  # transport open, state and payload ready
    STREAMING = auto()
    TERMINATED = auto()  # cancelled, transport released


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class StreamConfig:
    """Resolved configuration for one stream. Immutable after startup."""

    # Destination
    address: str = DEFAULT_ADDRESS
    port: int = DEFAULT_PORT

    # Pacing (packets per second)
    rate: float = DEFAULT_RATE

    # Payload file, built-in payload when None
    payload_path: Optional[str] = None

    # Source identity
    ssrc: Optional[int] = None  # random when None
    ssrc_order: SSRCByteOrder = SSRCByteOrder.HOST
    initial_sequence: int = 0

    # Diagnostics
    debug: bool = False

    def validate(self) -> None:
        """
        Check the configuration before any packet is sent.

        Raises:
            ConfigurationError: If a field is out of range
        """
        validate_rate(self.rate)
        if not 0 <= self.port <= 0xFFFF:
            raise ConfigurationError(f"Port out of range: {self.port}")
        if self.ssrc is not None and not 0 <= self.ssrc <= 0xFFFFFFFF:
            raise ConfigurationError(f"SSRC must fit in 32 bits: {self.ssrc}")
        if not 0 <= self.initial_sequence < SEQUENCE_MODULUS:
            raise ConfigurationError(
                f"Initial sequence must fit in 16 bits: {self.initial_sequence}"
            )


def validate_rate(rate: float) -> float:
    """Return rate if it lies in (0, MAX_RATE], else raise ConfigurationError."""
    if rate > MAX_RATE:
        raise ConfigurationError(
            f"Values greater than {MAX_RATE:g} packets per second are not supported"
        )
    if not rate > 0:
        raise ConfigurationError(f"Rate must be positive: {rate}")
    if not math.isfinite(NANOSECONDS_PER_SECOND / rate):
        raise ConfigurationError(f"Rate too small for a finite interval: {rate}")
    return rate


__all__ = [
    # Exceptions
    "RtpGenError",
    "ConfigurationError",
    "PayloadError",
    "TransportError",
    "WriteError",
    # Enums
    "SSRCByteOrder",
    "LoopState",
    # Configuration
    "StreamConfig",
    "validate_rate",
]
