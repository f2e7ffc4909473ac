import socket
import threading

import pytest

from rtpgen import BaseTransport, Clock, TransportAddress, WriteError


class FakeClock(Clock):
    """Manually driven clock."""

    def __init__(self, start_ns: int = 0, wall_s: int = 1_700_000_000):
        self.ns = start_ns
        self.wall_s = wall_s

    def now(self):
        return self.wall_s, self.ns % 1_000_000_000

    def monotonic_ns(self):
        return self.ns


class InterruptingEvent:
    """
    Stand-in for threading.Event whose wait() advances a FakeClock.

    Each wait sleeps only ``fraction`` of the requested timeout, as if a
    signal woke it early. ``cancel_after`` sets the flag after that many
    waits.
    """

    def __init__(self, clock: FakeClock, fraction: float = 1.0, cancel_after=None):
        self.clock = clock
        self.fraction = fraction
        self.cancel_after = cancel_after
        self.timeouts = []
        self._flag = False

    def is_set(self):
        return self._flag

    def set(self):
        self._flag = True

    def wait(self, timeout=None):
        if self._flag:
            return True
        self.timeouts.append(timeout)
        slept_ns = max(1, int(timeout * 1_000_000_000 * self.fraction))
        self.clock.ns += slept_ns
        if self.cancel_after is not None and len(self.timeouts) >= self.cancel_after:
            self._flag = True
        return self._flag


class RecordingTransport(BaseTransport):
    """In-memory transport that stops the stream after ``limit`` sends."""

    def __init__(self, limit=None, fail_on=()):
        super().__init__(TransportAddress(host="127.0.0.1", port=9999))
        self.limit = limit
        self.fail_on = set(fail_on)
        self.sent = []
        self.attempts = 0
        self.cancel = None

    def send(self, data):
        self.attempts += 1
        try:
            if self.attempts in self.fail_on:
                raise WriteError("simulated send failure")
            self.sent.append(data)
        finally:
            if self.limit is not None and self.attempts >= self.limit and self.cancel:
                self.cancel.set()

    def close(self):
        self._closed = True


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def receiver():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    yield sock
    sock.close()


@pytest.fixture
def cancel_event():
    return threading.Event()
