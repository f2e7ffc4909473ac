"""rtpgen - Synthetic MPEG-1 RTP stream generator."""

from __future__ import annotations

# Time source
from ._clock import Clock, SystemClock

# Packet assembly
from ._header import HeaderBuilder, PacketHeader
from ._payload import PayloadStore
from ._state import StreamState, timestamp_increment

# Pacing and loop
from ._scheduler import RateScheduler
from ._loop import StreamContext, StreamStats, Streamer

# Transports
from ._transports import BaseTransport, TransportAddress, UDPTransport

# Types
from ._types import (
    ConfigurationError,
    LoopState,
    PayloadError,
    RtpGenError,
    SSRCByteOrder,
    StreamConfig,
    TransportError,
    WriteError,
)
from ._utils import VERSION as __version__

__all__ = [
    "__version__",
    # Clock
    "Clock",
    "SystemClock",
    # Packet assembly
    "HeaderBuilder",
    "PacketHeader",
    "PayloadStore",
    "StreamState",
    "timestamp_increment",
    # Loop
    "RateScheduler",
    "StreamContext",
    "StreamStats",
    "Streamer",
    # Transports
    "BaseTransport",
    "TransportAddress",
    "UDPTransport",
    # Types
    "ConfigurationError",
    "LoopState",
    "PayloadError",
    "RtpGenError",
    "SSRCByteOrder",
    "StreamConfig",
    "TransportError",
    "WriteError",
]
