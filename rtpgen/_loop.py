"""
Transmission loop.

Lifecycle::

  UNINITIALIZED → CONFIGURED → STREAMING → TERMINATED

``configure()`` validates the configuration, loads the payload and opens
the transport; any failure there is fatal and nothing is sent. ``run()``
then streams until the cancel event is set. Send failures inside the loop
are logged and counted, never fatal. The transport is closed on every exit
path.
"""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from ._clock import Clock, SystemClock
from ._header import HeaderBuilder, PacketHeader
from ._payload import PayloadStore
from ._scheduler import RateScheduler
from ._state import StreamState
from ._transports import BaseTransport, UDPTransport
from ._types import LoopState, RtpGenError, StreamConfig, WriteError
from ._utils import NANOSECONDS_PER_SECOND, hexdump, logger

TransportFactory = Callable[[str, int], BaseTransport]


@dataclass
class StreamStats:
    """Counters reported when the stream stops."""

    packets_sent: int = 0
    bytes_sent: int = 0
    send_errors: int = 0
    started_ns: Optional[int] = None
    stopped_ns: Optional[int] = None

    @property
    def elapsed(self) -> float:
        """Seconds spent streaming."""
        if self.started_ns is None or self.stopped_ns is None:
            return 0.0
        return (self.stopped_ns - self.started_ns) / NANOSECONDS_PER_SECOND

    @property
    def achieved_rate(self) -> float:
        """Packets per second actually handed to the transport."""
        elapsed = self.elapsed
        return self.packets_sent / elapsed if elapsed > 0 else 0.0


@dataclass
class StreamContext:
    """Everything one stream owns while it runs."""

    transport: BaseTransport
    state: StreamState
    payload: PayloadStore
    builder: HeaderBuilder
    scheduler: RateScheduler
    clock: Clock = field(default_factory=SystemClock)
    debug: bool = False

    def next_packet(self) -> bytes:
        """Advance the counters and assemble the next datagram."""
        self.state.advance()
        return self.builder.build(self.state) + self.payload.data


class Streamer:
    """
    Drives one RTP stream from configuration to termination.

    Args:
        config: Stream configuration
        clock: Time source shared with the scheduler
        cancel: Event that stops the stream when set
        transport_factory: Callable(host, port) returning an open transport
    """

    def __init__(
        self,
        config: StreamConfig,
        *,
        clock: Optional[Clock] = None,
        cancel: Optional[threading.Event] = None,
        transport_factory: Optional[TransportFactory] = None,
    ) -> None:
        self.config = config
        self.clock = clock or SystemClock()
        self.cancel_event = cancel if cancel is not None else threading.Event()
        self._transport_factory = transport_factory or UDPTransport.open

        self.context: Optional[StreamContext] = None
        self.stats = StreamStats()
        self.state = LoopState.UNINITIALIZED

    def configure(self) -> StreamContext:
        """
        Prepare the stream.

        Raises:
            ConfigurationError: If the configuration is invalid
            PayloadError: If the payload file cannot be read
            TransportError: If the socket cannot be initialized
        """
        if self.state is not LoopState.UNINITIALIZED:
            raise RtpGenError(f"Stream already configured (state {self.state.name})")

        config = self.config
        config.validate()
        payload = PayloadStore.load(config.payload_path)

        ssrc = config.ssrc if config.ssrc is not None else secrets.randbits(32)
        builder = HeaderBuilder(ssrc, config.ssrc_order)
        state = StreamState(rate=config.rate, sequence=config.initial_sequence)
        scheduler = RateScheduler(config.rate, clock=self.clock, cancel=self.cancel_event)

        transport = self._transport_factory(config.address, config.port)

        self.context = StreamContext(
            transport=transport,
            state=state,
            payload=payload,
            builder=builder,
            scheduler=scheduler,
            clock=self.clock,
            debug=config.debug,
        )
        self.state = LoopState.CONFIGURED
        logger.info(
            f"Stream configured: {transport.destination}, {config.rate:g} packets/s "
            f"({scheduler.interval * 1000:.3f} ms interval), "
            f"SSRC 0x{ssrc:08X} ({builder.ssrc_order.value} order), "
            f"{len(payload)} byte payload"
        )
        return self.context

    def cancel(self) -> None:
        """Request the stream to stop."""
        self.cancel_event.set()

    def close(self) -> None:
        """
        Release the transport if the stream never ran.

        Safe to call in any state; a configured stream becomes TERMINATED.
        """
        if self.context is not None and not self.context.transport.is_closed:
            self.context.transport.close()
        if self.state is LoopState.CONFIGURED:
            self.state = LoopState.TERMINATED

    def __enter__(self) -> Streamer:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def run(self) -> StreamStats:
        """
        Stream packets until cancelled.

        Configures the stream first if needed.

        Returns:
            Final counters
        """
        if self.state is LoopState.UNINITIALIZED:
            self.configure()
        if self.state is not LoopState.CONFIGURED or self.context is None:
            raise RtpGenError(f"Cannot start streaming from state {self.state.name}")

        context = self.context
        self.state = LoopState.STREAMING
        self.stats.started_ns = self.clock.monotonic_ns()
        logger.info("Streaming started")

        try:
            with context.transport:
                while not self.cancel_event.is_set():
                    self._send_next(context)
                    if not context.scheduler.wait():
                        break
        finally:
            self.stats.stopped_ns = self.clock.monotonic_ns()
            self.state = LoopState.TERMINATED
            logger.info(
                f"Streaming stopped after {self.stats.packets_sent} packets "
                f"({self.stats.send_errors} send errors)"
            )

        return self.stats

    def _send_next(self, context: StreamContext) -> None:
        packet = context.next_packet()
        try:
            context.transport.send(packet)
        except WriteError as e:
            self.stats.send_errors += 1
            logger.warning(f"Packet {context.state.sequence} not sent: {e}")
        else:
            self.stats.packets_sent += 1
            self.stats.bytes_sent += len(packet)

        if context.debug:
            self._dump(context, packet)

    def _dump(self, context: StreamContext, packet: bytes) -> None:
        header = PacketHeader.parse(packet, context.builder.ssrc_order)
        logger.debug(
            f"Packet contents: seq={header.sequence} ts={header.timestamp} "
            f"ssrc=0x{header.ssrc:08X} pt={header.payload_type} len={len(packet)} "
            f"unix_us={context.clock.unix_timestamp_us()}\n{hexdump(packet)}"
        )

    def __repr__(self) -> str:
        return f"<Streamer({self.config.address}:{self.config.port}, {self.state.name})>"


__all__ = ["StreamStats", "StreamContext", "Streamer", "TransportFactory"]
