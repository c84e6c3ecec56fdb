"""Shared fakes for discovery tests."""

import pytest

from lms_discovery.protocol.codec import ServerInfo
from lms_discovery.transport.liveness_probe import LivenessProbe


def tlv(tag: str, value: str) -> bytes:
    encoded = value.encode("utf-8")
    return tag.encode("ascii") + bytes([len(encoded)]) + encoded


def make_response(**tags: str) -> bytes:
    """Build a response datagram, e.g. make_response(NAME="lms", JSON="9000")."""
    return b"E" + b"".join(tlv(tag, value) for tag, value in tags.items())


def make_server(address="192.168.1.10", name="Living Room", **overrides) -> ServerInfo:
    values = {
        "address": address,
        "name": name,
        "control_api_port": "9000",
        "unique_id": f"uuid-{name}",
        "version": "8.3.1",
        "control_channel_port": None,
    }
    values.update(overrides)
    return ServerInfo(**values)


class FakeTimer:
    """threading.Timer stand-in fired by hand."""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    @property
    def active(self):
        return self.started and not self.cancelled

    def fire(self):
        if self.active:
            self.function()


class FakeTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, function):
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer

    @property
    def active(self):
        return [t for t in self.timers if t.active]


class FakeConnection:
    def __init__(self, address, port):
        self.address = address
        self.port = port
        self.callback = None
        self.closed = False

    def drop(self):
        """Simulate the server closing the connection."""
        self.closed = True
        callback, self.callback = self.callback, None
        if callback:
            callback()

    def __str__(self):
        return f"{self.address}:{self.port}"


class FakeProbe(LivenessProbe):
    def __init__(self, fail=False):
        self.fail = fail
        self.attempts = []
        self.connections = []

    def connect(self, address, port, timeout):
        self.attempts.append((address, port, timeout))
        if self.fail:
            raise ConnectionRefusedError(f"refused {address}:{port}")
        connection = FakeConnection(address, port)
        self.connections.append(connection)
        return connection

    def on_close(self, connection, callback):
        connection.callback = callback

    def remove_close_callback(self, connection):
        connection.callback = None

    def close(self, connection):
        connection.drop()


class DeferredSpawn:
    """Queues probe attempts until run() is called."""

    def __init__(self):
        self.pending = []

    def __call__(self, target, *args):
        self.pending.append((target, args))

    def run(self):
        pending, self.pending = self.pending, []
        for target, args in pending:
            target(*args)


def run_inline(target, *args):
    target(*args)


class EventRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, event, payload):
        self.events.append((event, payload))

    def names(self):
        return [event for event, _ in self.events]


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def recorder():
    return EventRecorder()
