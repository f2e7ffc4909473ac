"""
RTP / MPEG video header assembly (RFC 3550, RFC 2250).

Layout of the 16-byte header::

    0               1               2               3
    +-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+
    |V=2|P|X|  CC   |M|   PT=32     |       sequence number         |
    +-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+
    |                           timestamp                           |
    +-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+
    |                             SSRC                              |
    +-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+
    |              MPEG video-specific header (all zero)            |
    +-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+-+

Every field is big-endian except the SSRC, whose byte order is selected by
:class:`SSRCByteOrder`.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ._types import SSRCByteOrder
from ._utils import HEADER_SIZE, MPEG_VIDEO_HEADER, RTP_HEADER_FLAGS

if TYPE_CHECKING:
    from ._state import StreamState


_LEADING = struct.Struct("!HHI")
_TRAILING = struct.Struct("!I")


def _ssrc_struct(order: SSRCByteOrder) -> struct.Struct:
    return struct.Struct(f"{order.struct_prefix}I")


@dataclass(frozen=True)
class PacketHeader:
    """Decoded view of a packet header."""

    sequence: int
    timestamp: int
    ssrc: int
    flags: int = RTP_HEADER_FLAGS
    mpeg_header: int = MPEG_VIDEO_HEADER
    ssrc_order: SSRCByteOrder = SSRCByteOrder.HOST

    @property
    def version(self) -> int:
        return self.flags >> 14

    @property
    def marker(self) -> bool:
        return bool(self.flags & 0x0080)

    @property
    def payload_type(self) -> int:
        return self.flags & 0x007F

    def to_bytes(self) -> bytes:
        return (
            _LEADING.pack(self.flags, self.sequence, self.timestamp)
            + _ssrc_struct(self.ssrc_order).pack(self.ssrc)
            + _TRAILING.pack(self.mpeg_header)
        )

    @classmethod
    def parse(
        cls, data: bytes, ssrc_order: SSRCByteOrder = SSRCByteOrder.HOST
    ) -> PacketHeader:
        """
        Decode the header at the start of a datagram.

        Raises:
            ValueError: If data is shorter than a header
        """
        if len(data) < HEADER_SIZE:
            raise ValueError(
                f"Packet too short: {len(data)} bytes, need {HEADER_SIZE}"
            )
        flags, sequence, timestamp = _LEADING.unpack_from(data, 0)
        (ssrc,) = _ssrc_struct(ssrc_order).unpack_from(data, 8)
        (mpeg_header,) = _TRAILING.unpack_from(data, 12)
        return cls(
            sequence=sequence,
            timestamp=timestamp,
            ssrc=ssrc,
            flags=flags,
            mpeg_header=mpeg_header,
            ssrc_order=ssrc_order,
        )


class HeaderBuilder:
    """Builds headers for one stream from its current counters."""

    def __init__(
        self, ssrc: int, ssrc_order: SSRCByteOrder = SSRCByteOrder.HOST
    ) -> None:
        self.ssrc = ssrc
        self.ssrc_order = SSRCByteOrder(ssrc_order)

    def build(self, state: StreamState) -> bytes:
        return self.header(state).to_bytes()

    def header(self, state: StreamState) -> PacketHeader:
        """Header fields for the packet about to be sent."""
        return PacketHeader(
            sequence=state.sequence,
            timestamp=state.timestamp,
            ssrc=self.ssrc,
            ssrc_order=self.ssrc_order,
        )

    def __repr__(self) -> str:
        return f"<HeaderBuilder(ssrc=0x{self.ssrc:08X}, order={self.ssrc_order.value})>"


__all__ = ["PacketHeader", "HeaderBuilder"]
