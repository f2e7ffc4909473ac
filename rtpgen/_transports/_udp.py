"""
UDP transport implementation.

Datagrams are sent without acknowledgment or retransmission; a failed send
is reported to the caller and never retried.
"""

from __future__ import annotations

import socket
from typing import Optional

from .._types import TransportError, WriteError
from .._utils import logger
from ._base import BaseTransport, TransportAddress


class UDPTransport(BaseTransport):
    """
    Synchronous UDP transport bound to one IPv4 destination.

    Use :meth:`open` to resolve the destination and create the socket.
    """

    def __init__(self, destination: TransportAddress, sock: socket.socket) -> None:
        """
        Wrap an already created socket.

        Args:
            destination: Resolved destination address
            sock: UDP socket owned by this transport from now on
        """
        super().__init__(destination)
        self._socket: Optional[socket.socket] = sock
        self._sockaddr = (destination.host, destination.port)

    @classmethod
    def open(cls, host: str, port: int) -> UDPTransport:
        """
        Resolve the destination and create the UDP socket.

        Args:
            host: Destination host (dotted quad or name)
            port: Destination UDP port

        Returns:
            Ready transport

        Raises:
            TransportError: If the destination cannot be resolved or the
                socket cannot be created
        """
        try:
            infos = socket.getaddrinfo(
                host, port, socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP
            )
        except (socket.gaierror, OSError, OverflowError) as e:
            raise TransportError(f"Failed to resolve {host}:{port}: {e}") from e
        if not infos:
            raise TransportError(f"No IPv4 address for {host}:{port}")

        resolved_host, resolved_port = infos[0][4][:2]

        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as e:
            raise TransportError(f"Failed to initialize UDP socket: {e}") from e

        destination = TransportAddress(host=resolved_host, port=resolved_port)
        logger.debug(f"UDP socket created for {destination}")
        return cls(destination, sock)

    def send(self, data: bytes) -> None:
        """
        Send one datagram via UDP.

        Raises:
            WriteError: If send fails
        """
        if self._socket is None or self._closed:
            raise TransportError("Transport is closed")

        try:
            sent = self._socket.sendto(data, self._sockaddr)
        except OSError as e:
            raise WriteError(f"Failed to send UDP datagram: {e}") from e
        if sent != len(data):
            raise WriteError(f"Incomplete send: sent {sent} of {len(data)} bytes")

    def close(self) -> None:
        """Close UDP socket."""
        if self._socket and not self._closed:
            self._socket.close()
            self._socket = None
            self._closed = True
            logger.debug(f"UDP socket for {self.destination} closed")

    def __repr__(self) -> str:
        status = "closed" if self._closed else "open"
        return f"<UDPTransport(UDP:{self.destination}, {status})>"
