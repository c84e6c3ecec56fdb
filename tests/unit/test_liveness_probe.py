"""Tests for the TCP liveness probe over loopback."""

import socket
import threading

import pytest

from lms_discovery.transport.liveness_probe import TcpLivenessProbe


@pytest.fixture
def cli_server():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    yield server
    server.close()


def test_connect_and_remote_close(cli_server):
    probe = TcpLivenessProbe()
    closed = threading.Event()
    calls = []

    connection = probe.connect("127.0.0.1", cli_server.getsockname()[1], 1.5)
    peer, _ = cli_server.accept()

    def on_close():
        calls.append(1)
        closed.set()

    probe.on_close(connection, on_close)
    peer.close()

    assert closed.wait(3.0)
    assert calls == [1]
    assert connection.closed


def test_connect_refused():
    probe = TcpLivenessProbe()
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    port = listener.getsockname()[1]
    listener.close()

    with pytest.raises(OSError):
        probe.connect("127.0.0.1", port, 1.5)


def test_deliberate_close_without_callback_is_silent(cli_server):
    probe = TcpLivenessProbe()
    calls = []

    connection = probe.connect("127.0.0.1", cli_server.getsockname()[1], 1.5)
    probe.on_close(connection, lambda: calls.append(1))
    probe.remove_close_callback(connection)
    probe.close(connection)

    assert connection.closed
    assert calls == []


def test_callback_fires_once(cli_server):
    probe = TcpLivenessProbe()
    calls = []
    fired = threading.Event()

    def on_close():
        calls.append(1)
        fired.set()

    connection = probe.connect("127.0.0.1", cli_server.getsockname()[1], 1.5)
    probe.on_close(connection, on_close)
    probe.close(connection)
    probe.close(connection)

    assert fired.wait(3.0)
    assert calls == [1]


def test_callback_on_already_closed_connection_fires_now(cli_server):
    probe = TcpLivenessProbe()
    calls = []

    connection = probe.connect("127.0.0.1", cli_server.getsockname()[1], 1.5)
    probe.close(connection)
    probe.on_close(connection, lambda: calls.append(1))

    assert calls == [1]


def test_keepalive_enabled(cli_server):
    probe = TcpLivenessProbe()
    connection = probe.connect("127.0.0.1", cli_server.getsockname()[1], 1.5)
    try:
        assert connection._sock.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE)
        assert str(connection) == f"127.0.0.1:{cli_server.getsockname()[1]}"
    finally:
        probe.close(connection)
