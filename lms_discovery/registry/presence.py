"""Presence registry for discovered servers.

Keeps the servers currently believed reachable, keyed by address, and
decides when each one is lost. A server is lost either when its expiry
timer runs out (no discovery response within the TTL), or, for servers
with a CLI port, as soon as the control connection held by the liveness
probe drops.

All state changes and event emission happen under a single reentrant
lock. Datagram handling, timer expiry and connection-close callbacks
therefore never interleave, and listeners may call back into the
registry from inside an event.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..events import DISCOVERED, LOST
from ..protocol.codec import ServerInfo
from ..transport.liveness_probe import (
    DEFAULT_CONNECT_TIMEOUT,
    ControlConnection,
    LivenessProbe,
)

EmitFn = Callable[[str, Any], None]
TimerFactory = Callable[[float, Callable[[], None]], Any]
SpawnFn = Callable[[Callable[..., None], Any], None]


def spawn_thread(target: Callable[..., None], *args: Any) -> None:
    threading.Thread(
        target=target, args=args, name="lms-discovery-probe", daemon=True
    ).start()


def parse_port(text: Optional[str]) -> Optional[int]:
    """Advertised port text as an int, or None when absent or not a number."""
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        return None


@dataclass
class RegistryEntry:
    """A known server and the mechanism that will expire it.

    Exactly one of ``timer`` and ``connection`` is set once any probe
    attempt has settled.
    """
    server: ServerInfo
    last_seen_at: float
    timer: Optional[Any] = None
    connection: Optional[ControlConnection] = None


class PresenceRegistry:
    """Reconciles discovery responses into discovered/lost transitions."""

    def __init__(
        self,
        emit: EmitFn,
        ttl: float,
        probe: Optional[LivenessProbe] = None,
        probe_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        timer_factory: TimerFactory = threading.Timer,
        spawn: SpawnFn = spawn_thread,
        debug: Optional[Callable[[str], None]] = None,
    ):
        """Initialize registry.

        Args:
            emit: Called with (event, server) for discovered/lost.
            ttl: Seconds after last contact before a server is lost.
            probe: Liveness probe for servers with a CLI port. None = TTL only.
            probe_timeout: Probe connect timeout in seconds.
            timer_factory: Builds expiry timers, threading.Timer-compatible.
            spawn: Runs probe attempts off the reconciliation path.
            debug: Optional trace sink.
        """
        self._emit = emit
        self._ttl = ttl
        self._probe = probe
        self._probe_timeout = probe_timeout
        self._timer_factory = timer_factory
        self._spawn = spawn
        self._debug = debug or (lambda msg: None)

        self._lock = threading.RLock()
        self._entries: dict[str, RegistryEntry] = {}
        self._probing: set[str] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> list[ServerInfo]:
        """Servers currently registered."""
        with self._lock:
            return [entry.server for entry in self._entries.values()]

    def get(self, address: str) -> Optional[RegistryEntry]:
        with self._lock:
            return self._entries.get(address)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, address: str) -> bool:
        with self._lock:
            return address in self._entries

    def reconcile(self, server: ServerInfo) -> None:
        """Fold a decoded discovery response into the registry."""
        with self._lock:
            if self._closed:
                self._debug(f"Registry closed - ignoring {server.address}")
                return

            address = server.address
            existing = self._entries.get(address) or self._find_by_unique_id(
                server.unique_id
            )
            prior = existing.server if existing else None

            # Same server answering from a new address
            if existing is not None and existing.server.address != address:
                self._debug(
                    f"Server {server.unique_id} moved from "
                    f"{existing.server.address} to {address}"
                )
                self._discard(existing)

            current = self._entries.get(address)
            connection = None
            if current is not None:
                self._cancel_timer(current)
                connection = current.connection
                if connection is not None and not self._probes_port(
                    connection, server
                ):
                    self._debug(f"Control channel of {address} changed - dropping {connection}")
                    self._detach(connection)
                    connection = None

            entry = RegistryEntry(
                server=server, last_seen_at=time.time(), connection=connection
            )
            self._entries[address] = entry

            start_probe = False
            if connection is None:
                self._arm_timer(entry)
                if (
                    server.has_control_channel
                    and self._probe is not None
                    and address not in self._probing
                ):
                    self._probing.add(address)
                    start_probe = True

            # The address is reserved in _probing, so the attempt must be
            # spawned even when a listener raises.
            try:
                self._emit_transition(prior, server)
            finally:
                if start_probe:
                    self._spawn(self._run_probe, server)

    def _emit_transition(self, prior: Optional[ServerInfo], server: ServerInfo) -> None:
        if prior is None:
            self._debug("This is a newly-discovered server. Emitting 'discovered' event...")
            self._emit(DISCOVERED, server)
        elif prior != server:
            self._debug(
                "A server with the same IP or UUID already discovered, but its "
                "info has changed. Emitting 'lost' + 'discovered' events..."
            )
            try:
                self._emit(LOST, prior)
            finally:
                self._emit(DISCOVERED, server)
        else:
            self._debug("Server already discovered - not going to emit event")

    def close(self) -> None:
        """Drop every entry without emitting events.

        Timers are cancelled and connections closed after their close
        callbacks are removed. Late timer or probe callbacks become no-ops.
        """
        with self._lock:
            self._closed = True
            for entry in self._entries.values():
                self._cancel_timer(entry)
                if entry.connection is not None:
                    self._detach(entry.connection)
                    entry.connection = None
            self._entries.clear()
            self._probing.clear()

    def _find_by_unique_id(self, unique_id: str) -> Optional[RegistryEntry]:
        for entry in self._entries.values():
            if entry.server.unique_id == unique_id:
                return entry
        return None

    @staticmethod
    def _probes_port(connection: ControlConnection, server: ServerInfo) -> bool:
        port = parse_port(server.control_channel_port)
        return port is not None and int(connection.port) == port

    def _discard(self, entry: RegistryEntry) -> None:
        self._entries.pop(entry.server.address, None)
        self._cancel_timer(entry)
        if entry.connection is not None:
            self._detach(entry.connection)
            entry.connection = None

    def _detach(self, connection: ControlConnection) -> None:
        self._probe.remove_close_callback(connection)
        self._probe.close(connection)

    def _arm_timer(self, entry: RegistryEntry) -> None:
        timer = self._timer_factory(self._ttl, lambda: self._expire(entry))
        timer.daemon = True
        entry.timer = timer
        timer.start()

    @staticmethod
    def _cancel_timer(entry: RegistryEntry) -> None:
        if entry.timer is not None:
            entry.timer.cancel()
            entry.timer = None

    def _expire(self, entry: RegistryEntry) -> None:
        with self._lock:
            address = entry.server.address
            if (
                self._closed
                or entry.timer is None
                or self._entries.get(address) is not entry
            ):
                return
            entry.timer = None
            del self._entries[address]
            self._debug(f"Detected lost server: {entry.server}. Emitting 'lost' event...")
            self._emit(LOST, entry.server)

    def _run_probe(self, server: ServerInfo) -> None:
        address = server.address
        port = server.control_channel_port
        try:
            port_number = parse_port(port)
            if port_number is None:
                raise ValueError(f"invalid CLI port {port!r}")
            connection = self._probe.connect(address, port_number, self._probe_timeout)
        except (OSError, ValueError) as e:
            self._debug(f"Failed to connect to {address}:{port}: {e}")
            with self._lock:
                self._probing.discard(address)
            return

        with self._lock:
            self._probing.discard(address)
            entry = self._entries.get(address)
            if (
                self._closed
                or entry is None
                or entry.connection is not None
                or not self._probes_port(connection, entry.server)
            ):
                self._debug(f"Connection to {connection} no longer needed - closing")
                self._probe.close(connection)
                return

            self._debug(f"Established connection to {connection}")
            self._cancel_timer(entry)
            entry.connection = connection
            self._probe.on_close(
                connection, lambda: self._connection_closed(address, connection)
            )

    def _connection_closed(self, address: str, connection: ControlConnection) -> None:
        with self._lock:
            entry = self._entries.get(address)
            if self._closed or entry is None or entry.connection is not connection:
                return
            entry.connection = None
            self._cancel_timer(entry)
            del self._entries[address]
            self._debug(
                f"Disconnected from server: {entry.server}. Emitting 'lost' event..."
            )
            self._emit(LOST, entry.server)
