import struct
import threading
import time

import pytest

from conftest import FakeClock, InterruptingEvent, RecordingTransport
from rtpgen import (
    ConfigurationError,
    LoopState,
    PacketHeader,
    PayloadError,
    RtpGenError,
    SSRCByteOrder,
    StreamConfig,
    Streamer,
    TransportError,
    UDPTransport,
)


def _streamer(config, transport, clock=None, fraction=1.0):
    clock = clock or FakeClock()
    cancel = InterruptingEvent(clock, fraction=fraction)
    transport.cancel = cancel
    streamer = Streamer(
        config,
        clock=clock,
        cancel=cancel,
        transport_factory=lambda host, port: transport,
    )
    return streamer, cancel, clock


def test_streams_until_cancelled():
    transport = RecordingTransport(limit=5)
    streamer, _, _ = _streamer(StreamConfig(rate=30, ssrc=1), transport)

    stats = streamer.run()

    assert len(transport.sent) == 5
    assert stats.packets_sent == 5
    assert stats.bytes_sent == 5 * 29
    assert stats.send_errors == 0


def test_packets_carry_advancing_counters():
    transport = RecordingTransport(limit=4)
    config = StreamConfig(rate=30, ssrc=0x01020304, ssrc_order=SSRCByteOrder.NETWORK)
    streamer, _, _ = _streamer(config, transport)

    streamer.run()

    headers = [PacketHeader.parse(p, SSRCByteOrder.NETWORK) for p in transport.sent]
    assert [h.sequence for h in headers] == [1, 2, 3, 4]
    assert [h.timestamp for h in headers] == [3000, 6000, 9000, 12000]
    assert {h.ssrc for h in headers} == {0x01020304}
    for packet in transport.sent:
        assert len(packet) == 29
        assert packet[:2] == b"\x80\x20"
        assert packet[16:] == b"TEST PAYLOAD\x00"


def test_initial_sequence_wraps():
    transport = RecordingTransport(limit=3)
    streamer, _, _ = _streamer(StreamConfig(rate=1, initial_sequence=65534), transport)

    streamer.run()

    sequences = [struct.unpack("!H", p[2:4])[0] for p in transport.sent]
    assert sequences == [65535, 0, 1]


def test_waits_one_interval_between_packets():
    transport = RecordingTransport(limit=3)
    streamer, cancel, clock = _streamer(StreamConfig(rate=8), transport)

    stats = streamer.run()

    # two full waits, the third packet cancels before waiting
    assert cancel.timeouts == [0.125, 0.125]
    assert clock.ns == 250_000_000
    assert stats.elapsed == pytest.approx(0.25)
    assert stats.achieved_rate == pytest.approx(12.0)


def test_file_payload_sets_datagram_length(tmp_path):
    path = tmp_path / "payload.bin"
    path.write_bytes(b"\xab" * 3000)
    transport = RecordingTransport(limit=2)
    streamer, _, _ = _streamer(StreamConfig(rate=100, payload_path=str(path)), transport)

    streamer.run()

    assert all(len(p) == 1500 for p in transport.sent)
    assert all(p[16:] == b"\xab" * 1484 for p in transport.sent)


def test_send_failure_is_not_fatal():
    transport = RecordingTransport(limit=4, fail_on={2, 3})
    streamer, _, _ = _streamer(StreamConfig(rate=30), transport)

    stats = streamer.run()

    assert transport.attempts == 4
    assert stats.packets_sent == 2
    assert stats.send_errors == 2
    # failed packets still consume their sequence numbers
    sequences = [struct.unpack("!H", p[2:4])[0] for p in transport.sent]
    assert sequences == [1, 4]


def test_lifecycle_states():
    transport = RecordingTransport(limit=1)
    streamer, _, _ = _streamer(StreamConfig(rate=30), transport)

    assert streamer.state is LoopState.UNINITIALIZED
    context = streamer.configure()
    assert streamer.state is LoopState.CONFIGURED
    assert context.transport is transport
    assert not transport.is_closed

    streamer.run()

    assert streamer.state is LoopState.TERMINATED
    assert transport.is_closed


def test_cannot_run_twice():
    transport = RecordingTransport(limit=1)
    streamer, _, _ = _streamer(StreamConfig(rate=30), transport)
    streamer.run()
    with pytest.raises(RtpGenError):
        streamer.run()


def test_cancelled_before_start_sends_nothing():
    transport = RecordingTransport()
    streamer, cancel, _ = _streamer(StreamConfig(rate=30), transport)
    cancel.set()

    stats = streamer.run()

    assert stats.packets_sent == 0
    assert transport.is_closed


def test_transport_released_on_unexpected_error():
    class ExplodingTransport(RecordingTransport):
        def send(self, data):
            raise RuntimeError("unexpected")

    transport = ExplodingTransport()
    streamer, _, _ = _streamer(StreamConfig(rate=30), transport)

    with pytest.raises(RuntimeError):
        streamer.run()

    assert transport.is_closed
    assert streamer.state is LoopState.TERMINATED


def test_rate_above_limit_rejected_before_transport_opens():
    opened = []
    streamer = Streamer(
        StreamConfig(rate=20000),
        transport_factory=lambda host, port: opened.append((host, port)),
    )
    with pytest.raises(ConfigurationError):
        streamer.configure()
    assert opened == []
    assert streamer.state is LoopState.UNINITIALIZED


def test_missing_payload_rejected_before_transport_opens(tmp_path):
    opened = []
    streamer = Streamer(
        StreamConfig(payload_path=str(tmp_path / "missing")),
        transport_factory=lambda host, port: opened.append((host, port)),
    )
    with pytest.raises(PayloadError):
        streamer.configure()
    assert opened == []


def test_transport_failure_propagates():
    def fail(host, port):
        raise TransportError("no socket")

    streamer = Streamer(StreamConfig(), transport_factory=fail)
    with pytest.raises(TransportError):
        streamer.configure()


def test_random_ssrc_is_constant_for_stream():
    transport = RecordingTransport(limit=3)
    streamer, _, _ = _streamer(StreamConfig(rate=30), transport)

    streamer.run()

    ssrcs = {p[8:12] for p in transport.sent}
    assert len(ssrcs) == 1


def test_debug_dump_logs_packet(caplog):
    transport = RecordingTransport(limit=1)
    streamer, _, _ = _streamer(StreamConfig(rate=30, ssrc=0xAB, debug=True), transport)

    with caplog.at_level("DEBUG", logger="rtpgen"):
        streamer.run()

    dump = [r.getMessage() for r in caplog.records if "Packet contents" in r.getMessage()]
    assert len(dump) == 1
    assert "seq=1" in dump[0]
    assert "ts=3000" in dump[0]
    assert "unix_us=" in dump[0]
    assert "0000  80 20 00 01" in dump[0]


def test_end_to_end_over_loopback(receiver):
    host, port = receiver.getsockname()
    config = StreamConfig(address=host, port=port, rate=30, ssrc=0x1234)
    streamer = Streamer(config)

    thread = threading.Thread(target=streamer.run)
    start = time.monotonic()
    thread.start()
    try:
        datagrams = [receiver.recvfrom(2048)[0] for _ in range(3)]
        elapsed = time.monotonic() - start
    finally:
        streamer.cancel()
        thread.join(timeout=2.0)

    assert not thread.is_alive()
    assert streamer.state is LoopState.TERMINATED
    assert elapsed >= 2 * 0.0333 * 0.9
    headers = [PacketHeader.parse(d) for d in datagrams]
    assert all(len(d) == 29 for d in datagrams)
    assert [h.sequence for h in headers] == [1, 2, 3]
    assert [h.timestamp for h in headers] == [3000, 6000, 9000]
    assert {h.ssrc for h in headers} == {0x1234}


def test_context_manager_releases_transport_without_run():
    transport = RecordingTransport()
    streamer, _, _ = _streamer(StreamConfig(rate=30), transport)

    with streamer:
        streamer.configure()
        assert not transport.is_closed

    assert transport.is_closed
    assert streamer.state is LoopState.TERMINATED
    assert transport.sent == []


def test_close_after_run_is_harmless():
    transport = RecordingTransport(limit=1)
    streamer, _, _ = _streamer(StreamConfig(rate=30), transport)

    with streamer:
        streamer.run()

    assert transport.is_closed
    assert streamer.state is LoopState.TERMINATED


def test_close_before_configure_is_harmless():
    streamer = Streamer(StreamConfig())
    streamer.close()
    assert streamer.state is LoopState.UNINITIALIZED


def test_startup_log_reports_interval(caplog):
    transport = RecordingTransport()
    streamer, _, _ = _streamer(StreamConfig(rate=30), transport)

    with caplog.at_level("INFO", logger="rtpgen"):
        with streamer:
            streamer.configure()

    assert any("33.333 ms interval" in r.getMessage() for r in caplog.records)


def test_tiny_rate_rejected_before_transport_opens():
    opened = []
    streamer = Streamer(
        StreamConfig(rate=1e-320),
        transport_factory=lambda host, port: opened.append((host, port)),
    )
    with pytest.raises(ConfigurationError):
        streamer.configure()
    assert opened == []
