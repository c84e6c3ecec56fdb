"""Discovery service - ties codec, transport, registry and scheduler.

Usage:

    service = DiscoveryService()
    service.on("discovered", lambda server: print("found", server))
    service.on("lost", lambda server: print("lost", server))
    service.start({"discoveredTTL": 40000})
    ...
    service.stop()
"""

import json
import threading
from functools import partial
from typing import Any, Callable, Mapping, Optional, Union

from .config.parser import parse_config_data
from .config.schema import DiscoveryConfig
from .config.validator import validate_config
from .debug import DebugLog
from .discovery.scheduler import DiscoveryScheduler
from .discovery.udp_transport import BroadcastTransport
from .events import ERROR, EventBus, Listener
from .protocol.codec import DISCOVERY_REQUEST, ServerInfo, decode_response
from .registry.presence import PresenceRegistry, spawn_thread
from .transport.liveness_probe import LivenessProbe, TcpLivenessProbe

STATUS_RUNNING = "running"
STATUS_STOPPED = "stopped"

ConfigLike = Union[DiscoveryConfig, Mapping[str, Any], None]


class DiscoveryService:
    """Discovers LMS instances on the LAN and tracks their presence.

    Publishes ``discovered``, ``lost`` and ``error`` events. One
    discovery session runs at a time per instance; instances share no
    state.
    """

    def __init__(
        self,
        transport_factory: Callable[..., BroadcastTransport] = BroadcastTransport,
        probe: Optional[LivenessProbe] = None,
        timer_factory: Callable[..., Any] = threading.Timer,
        scheduler_factory: Callable[..., DiscoveryScheduler] = DiscoveryScheduler,
        spawn: Callable[..., None] = spawn_thread,
    ):
        """Initialize service.

        Args:
            transport_factory: Builds the broadcast transport.
            probe: Liveness probe for servers with a CLI port.
                Default: TcpLivenessProbe.
            timer_factory: Builds registry expiry timers.
            scheduler_factory: Builds the broadcast scheduler.
            spawn: Runs liveness probe attempts in the background.
        """
        self._debug = DebugLog()
        self._events = EventBus(debug=self._debug)
        self._transport_factory = transport_factory
        self._probe = probe if probe is not None else TcpLivenessProbe()
        self._timer_factory = timer_factory
        self._scheduler_factory = scheduler_factory
        self._spawn = spawn

        self._lock = threading.Lock()
        self._config: Optional[DiscoveryConfig] = None
        self._registry: Optional[PresenceRegistry] = None
        self._transport: Optional[BroadcastTransport] = None
        self._scheduler: Optional[DiscoveryScheduler] = None

    @property
    def config(self) -> Optional[DiscoveryConfig]:
        """Options of the running session, or None when stopped."""
        return self._config

    def start(self, config: ConfigLike = None) -> None:
        """Start discovering.

        Args:
            config: DiscoveryConfig, a mapping of options (snake_case or
                camelCase), or None for the defaults.

        Raises:
            RuntimeError: If the service is already running.
            ValueError: If the options are invalid.
        """
        with self._lock:
            if self._registry is not None:
                self._debug("Error: cannot call start() on service that is already running")
                raise RuntimeError("Discovery service is already running")

            config = self._resolve_config(config)
            validation = validate_config(config)
            if not validation.valid:
                self._debug(f"Error: invalid options: {validation}")
                raise ValueError(f"Invalid option values: {validation}")

            self._debug(
                f"Starting discovery service with options {json.dumps(config.to_dict())}..."
            )
            registry = PresenceRegistry(
                emit=self._events.emit,
                ttl=config.discovered_ttl_seconds,
                probe=self._probe,
                probe_timeout=config.probe_timeout_seconds,
                timer_factory=self._timer_factory,
                spawn=self._spawn,
                debug=self._debug,
            )
            transport = self._transport_factory(
                on_datagram=partial(self._handle_datagram, registry),
                on_error=self._handle_error,
                debug=self._debug,
            )
            scheduler = self._scheduler_factory(
                config.discover_interval_seconds,
                partial(self._send_discovery_request, transport, config),
            )

            self._config = config
            self._registry = registry
            self._transport = transport
            self._scheduler = scheduler

            transport.open()
            self._debug("Service started")
            self._debug(
                f"Going to send discovery requests at intervals of {config.discover_interval}ms"
            )
            scheduler.start()

    def stop(self) -> None:
        """Stop discovering and forget every server. No-op when stopped.

        No discovered/lost event fires once this returns.
        """
        with self._lock:
            if self._registry is None:
                self._debug("stop(): service already stopped")
                return
            self._debug("Stopping discovery service...")
            registry, transport, scheduler = self._registry, self._transport, self._scheduler
            self._config = None
            self._registry = None
            self._transport = None
            self._scheduler = None

        scheduler.stop()
        registry.close()
        transport.close()
        self._debug("Service stopped")

    def get_status(self) -> str:
        """Return "running" or "stopped"."""
        return STATUS_RUNNING if self._registry is not None else STATUS_STOPPED

    def get_all_discovered(self) -> list[ServerInfo]:
        """Servers currently registered."""
        registry = self._registry
        if registry is None:
            return []
        return registry.snapshot()

    def set_debug(
        self,
        enabled: bool = True,
        callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        """Enable trace lines, sent to ``callback`` or stdout."""
        self._debug.configure(enabled, callback)

    def on(self, event: str, listener: Listener) -> None:
        self._events.on(event, listener)

    def once(self, event: str, listener: Listener) -> None:
        self._events.once(event, listener)

    def off(self, event: str, listener: Listener) -> None:
        self._events.off(event, listener)

    def _resolve_config(self, config: ConfigLike) -> DiscoveryConfig:
        if isinstance(config, DiscoveryConfig):
            return config
        return parse_config_data(config)

    def _send_discovery_request(
        self, transport: BroadcastTransport, config: DiscoveryConfig
    ) -> None:
        self._debug(
            f"Sending discovery request to {config.broadcast_address}:{config.discovery_port}..."
        )
        transport.send(DISCOVERY_REQUEST, config.broadcast_address, config.discovery_port)

    def _handle_datagram(
        self, registry: PresenceRegistry, data: bytes, sender_address: str
    ) -> None:
        server = decode_response(data, sender_address, debug=self._debug)
        if server is None:
            return
        self._debug(f"Discovery response parsed: {json.dumps(server.to_dict())}")
        registry.reconcile(server)

    def _handle_error(self, error: Exception) -> None:
        self._events.emit(ERROR, error)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.stop()
