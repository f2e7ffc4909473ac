"""
Datagram transport layer.

This package provides the transport the generator sends packets through:
- UDP: Connectionless, fire-and-forget datagrams to one destination
"""

from .._types import TransportError, WriteError
from ._base import BaseTransport, TransportAddress
from ._udp import UDPTransport

__all__ = [
    # Base classes
    "BaseTransport",
    "TransportAddress",
    # Implementations
    "UDPTransport",
    # Exceptions
    "TransportError",
    "WriteError",
]
