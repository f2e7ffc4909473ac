"""Command-line entry point for the RTP stream generator.

Sends an MPEG-1 RTP stream to the given address until interrupted, then
prints a short summary. Example::

    rtpgen -a 127.0.0.1 -p 9999 -r 30
"""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from typing import Any, Dict, Optional, Sequence

from rich.logging import RichHandler
from rich.panel import Panel

from ._loop import StreamStats, Streamer
from ._types import (
    ConfigurationError,
    PayloadError,
    SSRCByteOrder,
    StreamConfig,
    TransportError,
)
from ._utils import (
    DEFAULT_ADDRESS,
    DEFAULT_PORT,
    DEFAULT_RATE,
    MAX_ADDRESS_LENGTH,
    PROGRAM_NAME,
    VERSION,
    console,
    logger,
)

EXIT_OK = 0
EXIT_PAYLOAD_ERROR = 1
EXIT_SOCKET_ERROR = 255

_STOP_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP")


def _rate(value: str) -> float:
	try:
		rate = float(value)
	except ValueError:
		raise argparse.ArgumentTypeError(f"invalid rate: {value!r}") from None
	if not rate > 0:
		raise argparse.ArgumentTypeError(f"rate must be positive: {value!r}")
	return rate


def _port(value: str) -> int:
	try:
		port = int(value)
	except ValueError:
		raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
	if not 0 <= port <= 0xFFFF:
		raise argparse.ArgumentTypeError(f"port out of range: {port}")
	return port


def _ssrc(value: str) -> int:
	try:
		ssrc = int(value, 0)
	except ValueError:
		raise argparse.ArgumentTypeError(f"invalid SSRC: {value!r}") from None
	if not 0 <= ssrc <= 0xFFFFFFFF:
		raise argparse.ArgumentTypeError(f"SSRC must fit in 32 bits: {value!r}")
	return ssrc


def _build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="rtpgen",
		description="Send a synthetic MPEG-1 RTP stream to a UDP destination",
	)
	parser.add_argument(
		"-a",
		"--address",
		default=DEFAULT_ADDRESS,
		help="Destination address in dotted quad notation (e.g. 127.0.0.1)",
	)
	parser.add_argument(
		"-p",
		"--port",
		type=_port,
		default=DEFAULT_PORT,
		help="The port to send packets to",
	)
	parser.add_argument(
		"-r",
		"--rate",
		type=_rate,
		default=DEFAULT_RATE,
		help="Packets per second (e.g. rate 30, 30 packets sent per second)",
	)
	parser.add_argument(
		"-c",
		"--payload",
		metavar="FILE",
		help='Load packet payload from file (default: "TEST PAYLOAD")',
	)
	parser.add_argument(
		"--ssrc",
		type=_ssrc,
		help="Fixed SSRC value (decimal or 0x hex); random when omitted",
	)
	parser.add_argument(
		"--ssrc-order",
		choices=[order.value for order in SSRCByteOrder],
		default=SSRCByteOrder.HOST.value,
		help="Byte order of the SSRC field; 'host' matches the legacy generator",
	)
	parser.add_argument(
		"-d",
		"--debug",
		action="store_true",
		help="Dump every packet and enable DEBUG logging",
	)
	parser.add_argument(
		"--log-level",
		default="INFO",
		choices={"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"},
		help="Logging verbosity",
	)
	parser.add_argument(
		"-v",
		"--version",
		action="version",
		version=f"%(prog)s {VERSION}",
	)
	return parser


def _configure_logging(level: str, debug: bool) -> None:
	effective_level = "DEBUG" if debug else level
	logging.basicConfig(
		level=getattr(logging, effective_level.upper(), logging.INFO),
		format="%(message)s",
		handlers=[
			RichHandler(
				console=console,
				rich_tracebacks=True,
				show_path=False,
			)
		],
		force=True,
	)


def _install_signal_handlers(cancel: threading.Event) -> Dict[int, Any]:
	def _handler(signum, frame) -> None:
		logger.info(f"Received {signal.Signals(signum).name}, stopping")
		cancel.set()

	previous = {}
	for name in _STOP_SIGNALS:
		signum = getattr(signal, name, None)
		if signum is not None:
			previous[signum] = signal.signal(signum, _handler)
	return previous


def _restore_signal_handlers(previous: Dict[int, Any]) -> None:
	for signum, handler in previous.items():
		# None means the handler was not installed from Python
		if handler is not None:
			signal.signal(signum, handler)


def _truncate_address(address: str) -> str:
	if len(address) > MAX_ADDRESS_LENGTH:
		truncated = address[:MAX_ADDRESS_LENGTH]
		logger.warning(f"Address {address!r} truncated to {truncated!r}")
		return truncated
	return address


def _render_summary(stats: StreamStats) -> Panel:
	lines = [
		f"[bold]Packets sent[/]: {stats.packets_sent}",
		f"[bold]Bytes sent[/]: {stats.bytes_sent}",
		f"[bold]Send errors[/]: {stats.send_errors}",
		f"[bold]Duration[/]: {stats.elapsed:.2f} s",
		f"[bold]Achieved rate[/]: {stats.achieved_rate:.2f} packets/s",
	]
	return Panel("\n".join(lines), title="Stream Summary", border_style="green")


def main(argv: Optional[Sequence[str]] = None) -> int:
	parser = _build_parser()
	args = parser.parse_args(argv)
	_configure_logging(args.log_level, args.debug)

	console.print(f"\n[bold]{PROGRAM_NAME}[/], Version {VERSION}\n")

	config = StreamConfig(
		address=_truncate_address(args.address),
		port=args.port,
		rate=args.rate,
		payload_path=args.payload,
		ssrc=args.ssrc,
		ssrc_order=SSRCByteOrder(args.ssrc_order),
		debug=args.debug,
	)
	streamer = Streamer(config)

	# Handlers go in before the socket opens so a signal always ends in close()
	previous_handlers = _install_signal_handlers(streamer.cancel_event)
	try:
		with streamer:
			try:
				streamer.configure()
			except ConfigurationError as exc:
				logger.error(str(exc))
				return EXIT_OK
			except PayloadError as exc:
				logger.error(str(exc))
				return EXIT_PAYLOAD_ERROR
			except TransportError as exc:
				logger.error(f"Unable to create socket: {exc}")
				return EXIT_SOCKET_ERROR

			stats = streamer.run()
	finally:
		_restore_signal_handlers(previous_handlers)

	console.print(_render_summary(stats))
	return EXIT_OK


if __name__ == "__main__":
	raise SystemExit(main())
