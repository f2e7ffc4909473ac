"""Payload storage with a fixed capacity."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from ._types import PayloadError
from ._utils import DEFAULT_PAYLOAD, MAX_PAYLOAD_SIZE, logger


class PayloadStore:
    """
    Immutable payload buffer, fixed once at stream start.

    Holds at most ``MAX_PAYLOAD_SIZE`` bytes so a header plus payload always
    fits a 1500-byte datagram.
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes = DEFAULT_PAYLOAD) -> None:
        if len(data) > MAX_PAYLOAD_SIZE:
            raise PayloadError(
                f"Payload of {len(data)} bytes exceeds capacity of {MAX_PAYLOAD_SIZE}"
            )
        self._data = bytes(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> PayloadStore:
        """
        Load a payload from file, keeping at most MAX_PAYLOAD_SIZE bytes.

        Raises:
            PayloadError: If the file cannot be opened or read
        """
        try:
            with open(path, "rb") as fh:
                data = fh.read(MAX_PAYLOAD_SIZE)
        except OSError as e:
            raise PayloadError(f"Error reading payload file {path}: {e}") from e

        logger.debug(f"Loaded {len(data)} byte payload from {path}")
        return cls(data)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> PayloadStore:
        """Load from path, or return the built-in payload when path is None."""
        if path is None:
            return cls()
        return cls.from_file(path)

    @property
    def data(self) -> bytes:
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    def __bytes__(self) -> bytes:
        return self._data

    def __repr__(self) -> str:
        return f"<PayloadStore({len(self._data)} bytes)>"


__all__ = ["PayloadStore"]
