"""
Base transport abstractions.

A transport owns one socket bound to a single destination and exposes a
fire-and-forget send. It is a context manager so the socket is released on
every exit path.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass


@dataclass(frozen=True)
class TransportAddress:
    """Represents a resolved destination (host, port)."""

    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class BaseTransport(abc.ABC):
    """
    Abstract base class for datagram transports.

    Implementations must provide send and close.
    """

    def __init__(self, destination: TransportAddress) -> None:
        """
        Initialize transport for a destination.

        Args:
            destination: Where every datagram is sent
        """
        self.destination = destination
        self._closed = False

    @abc.abstractmethod
    def send(self, data: bytes) -> None:
        """
        Send one datagram to the destination.

        Args:
            data: Raw bytes to send

        Raises:
            WriteError: On send failure
            TransportError: If the transport is closed
        """
        ...

    @abc.abstractmethod
    def close(self) -> None:
        """Close the transport and release resources."""
        ...

    def __enter__(self) -> BaseTransport:
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager and close transport."""
        self.close()

    @property
    def is_closed(self) -> bool:
        """Check if transport is closed."""
        return self._closed
