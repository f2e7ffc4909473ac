"""Utilities and constants for the RTP stream generator."""

import logging
from rich.console import Console
from rich.logging import RichHandler

# Rich Console for pretty printing
console = Console()

# Configure logging with RichHandler
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
)

# Get logger for the package
logger = logging.getLogger("rtpgen")

PROGRAM_NAME = "RTP Stream Generator"
VERSION = "0.1"

# Network defaults
DEFAULT_ADDRESS = "127.0.0.1"
DEFAULT_PORT = 9000
DEFAULT_RATE = 1.0
MAX_RATE = 10000.0
MAX_ADDRESS_LENGTH = 15  # dotted quad

# RTP / RFC 2250 constants
RTP_HEADER_FLAGS = 0x8020  # V=2, P=0, X=0, CC=0, M=0, PT=32 (MPV)
MPEG_VIDEO_HEADER = 0x00000000
RTP_VIDEO_CLOCK_RATE = 90000
HEADER_SIZE = 16

# Buffer capacities
MAX_DATAGRAM_SIZE = 1500
MAX_PAYLOAD_SIZE = MAX_DATAGRAM_SIZE - HEADER_SIZE

DEFAULT_PAYLOAD = b"TEST PAYLOAD\x00"

# Counter widths
SEQUENCE_MODULUS = 1 << 16
TIMESTAMP_MODULUS = 1 << 32

NANOSECONDS_PER_SECOND = 1_000_000_000


def hexdump(data: bytes, width: int = 16) -> str:
    """Render bytes as rows of space separated hex pairs."""
    rows = []
    for offset in range(0, len(data), width):
        chunk = data[offset : offset + width]
        rows.append(f"{offset:04x}  " + " ".join(f"{b:02X}" for b in chunk))
    return "\n".join(rows)
