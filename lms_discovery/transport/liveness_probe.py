"""Liveness probe over the LMS CLI control channel.

Servers that advertise a CLI port (CLIP tag) accept plain TCP
connections on it. Holding one open lets us notice a server going away
as soon as the connection drops, instead of waiting for the discovery
TTL to run out.
"""

import socket
import threading
from typing import Callable, Optional

# Connect timeout in seconds
DEFAULT_CONNECT_TIMEOUT = 1.5

_RECV_SIZE = 4096

CloseCallback = Callable[[], None]


class ControlConnection:
    """An open control-channel connection watched for closure."""

    def __init__(self, sock: socket.socket, address: str, port: int):
        self.address = address
        self.port = port
        self._sock = sock
        self._lock = threading.Lock()
        self._callback: Optional[CloseCallback] = None
        self._closed = False
        self._notified = False
        self._watcher = threading.Thread(
            target=self._watch,
            name=f"lms-discovery-cli-{address}",
            daemon=True,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        self._watcher.start()

    def set_close_callback(self, callback: CloseCallback) -> None:
        """Register the close notification.

        If the connection is already closed the callback fires now.
        """
        with self._lock:
            self._callback = callback
            fire_now = self._closed and not self._notified
            if fire_now:
                self._notified = True
        if fire_now:
            callback()

    def clear_close_callback(self) -> None:
        with self._lock:
            self._callback = None

    def close(self) -> None:
        """Close the connection. Fires the close callback if still set."""
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            self._sock.close()
        except OSError:
            pass
        self._handle_closed()

    def _watch(self) -> None:
        while True:
            try:
                data = self._sock.recv(_RECV_SIZE)
            except OSError:
                break
            if not data:
                break
        self._handle_closed()

    def _handle_closed(self) -> None:
        with self._lock:
            self._closed = True
            callback = None if self._notified else self._callback
            if callback:
                self._notified = True
        if callback:
            callback()

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"


class LivenessProbe:
    """Capability interface for control-channel liveness probes.

    The registry only talks to this interface, so tests and other
    channel kinds can be swapped in.
    """

    def connect(self, address: str, port: int, timeout: float) -> ControlConnection:
        """Open a connection. Raises OSError on failure or timeout."""
        raise NotImplementedError

    def on_close(self, connection: ControlConnection, callback: CloseCallback) -> None:
        connection.set_close_callback(callback)

    def remove_close_callback(self, connection: ControlConnection) -> None:
        connection.clear_close_callback()

    def close(self, connection: ControlConnection) -> None:
        connection.close()


class TcpLivenessProbe(LivenessProbe):
    """Probe that holds a TCP connection to the server's CLI port.

    TCP keepalive is enabled so a peer that vanishes without closing is
    eventually reported by the OS.
    """

    def connect(
        self,
        address: str,
        port: int,
        timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> ControlConnection:
        sock = socket.create_connection((address, int(port)), timeout=timeout)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            sock.settimeout(None)
        except OSError:
            sock.close()
            raise

        connection = ControlConnection(sock, address, int(port))
        connection.start()
        return connection
