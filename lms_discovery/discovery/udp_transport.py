"""UDP broadcast transport for LMS discovery.

Owns the broadcast socket: sends discovery requests and hands every
inbound datagram to a callback, one at a time, in arrival order.
Socket errors are reported through a callback and never stop the
service.
"""

import socket
import threading
from typing import Callable, Optional

# Receive buffer size; discovery responses are well under this
BUFFER_SIZE = 4096

# Seconds the receive loop blocks before re-checking for close
POLL_INTERVAL = 1.0

DatagramHandler = Callable[[bytes, str], None]
ErrorHandler = Callable[[Exception], None]


class BroadcastTransport:
    """Connectionless broadcast-capable UDP socket with a receive thread."""

    def __init__(
        self,
        on_datagram: DatagramHandler,
        on_error: ErrorHandler,
        debug: Optional[Callable[[str], None]] = None,
    ):
        """Initialize transport.

        Args:
            on_datagram: Called with (payload, sender_ip) per datagram.
            on_error: Called with the exception on socket failures.
            debug: Optional trace sink.
        """
        self._on_datagram = on_datagram
        self._on_error = on_error
        self._debug = debug or (lambda msg: None)
        self._sock: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._closed: Optional[threading.Event] = None

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    @property
    def local_address(self) -> Optional[tuple[str, int]]:
        """(host, port) the socket is bound to, or None when closed."""
        sock = self._sock
        if sock is None:
            return None
        return sock.getsockname()

    def _create_socket(self) -> socket.socket:
        """Create and configure the UDP socket."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.bind(("", 0))
            sock.settimeout(POLL_INTERVAL)
        except OSError:
            sock.close()
            raise
        return sock

    def open(self) -> None:
        """Bind the socket and start receiving.

        Bind failures are reported through ``on_error``; the transport
        then stays closed.
        """
        if self._sock is not None:
            return

        self._debug("Initializing socket...")
        try:
            sock = self._create_socket()
        except OSError as e:
            self._debug(f"Socket error: {e}")
            self._on_error(e)
            return

        self._sock = sock
        closed = threading.Event()
        self._closed = closed
        addr = sock.getsockname()
        self._debug(f"Socket listening on {addr[0]}:{addr[1]}")

        self._thread = threading.Thread(
            target=self._receive_loop,
            args=(sock, closed),
            name="lms-discovery-recv",
            daemon=True,
        )
        self._thread.start()

    def send(self, payload: bytes, address: str, port: int) -> None:
        """Send a datagram. Failures go to ``on_error``."""
        sock = self._sock
        if sock is None:
            self._debug("send(): socket is not open")
            return

        try:
            sock.sendto(payload, (address, port))
        except OSError as e:
            if self._sock is not sock:
                self._debug(f"send(): socket closed while sending to {address}:{port}")
                return
            self._debug(f"Error in sending to {address}:{port}: {e}")
            self._on_error(e)

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        sock = self._sock
        if sock is None:
            return

        self._sock = None
        self._closed.set()
        self._closed = None
        self._thread = None
        try:
            sock.close()
        except OSError:
            pass
        self._debug("Socket closed")

    def _receive_loop(self, sock: socket.socket, closed: threading.Event) -> None:
        while not closed.is_set():
            try:
                data, addr = sock.recvfrom(BUFFER_SIZE)
            except socket.timeout:
                continue
            except OSError as e:
                if closed.is_set():
                    break
                self._debug(f"Socket error: {e}")
                self._on_error(e)
                continue

            if closed.is_set():
                break

            self._debug(f"Message received from {addr[0]}")
            try:
                self._on_datagram(data, addr[0])
            except Exception as e:
                self._debug(f"Error handling message from {addr[0]}: {e}")
                self._on_error(e)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.close()
