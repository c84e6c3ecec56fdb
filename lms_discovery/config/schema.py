"""Configuration data models for the discovery service."""

from dataclasses import asdict, dataclass, field
from typing import Any

from ..protocol.codec import DISCOVERY_PORT

DEFAULT_BROADCAST_ADDRESS = "255.255.255.255"
DEFAULT_DISCOVERED_TTL = 60000
DEFAULT_DISCOVER_INTERVAL = 30000
DEFAULT_PROBE_TIMEOUT = 1500

# Option names used by the JavaScript library this package mirrors
CAMEL_CASE_ALIASES = {
    "broadcastAddress": "broadcast_address",
    "discoveredTTL": "discovered_ttl",
    "discoverInterval": "discover_interval",
    "discoveryPort": "discovery_port",
    "probeTimeout": "probe_timeout",
}


@dataclass
class DiscoveryConfig:
    """Options for a discovery session. Durations are in milliseconds."""
    broadcast_address: str = DEFAULT_BROADCAST_ADDRESS
    # How long a server without a live control connection stays
    # registered after its last discovery response
    discovered_ttl: int = DEFAULT_DISCOVERED_TTL
    # How often discovery requests are broadcast
    discover_interval: int = DEFAULT_DISCOVER_INTERVAL
    discovery_port: int = DISCOVERY_PORT
    probe_timeout: int = DEFAULT_PROBE_TIMEOUT

    @property
    def discovered_ttl_seconds(self) -> float:
        return self.discovered_ttl / 1000.0

    @property
    def discover_interval_seconds(self) -> float:
        return self.discover_interval / 1000.0

    @property
    def probe_timeout_seconds(self) -> float:
        return self.probe_timeout / 1000.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ValidationError:
    """A single validation error."""
    path: str
    message: str


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def __str__(self) -> str:
        if self.valid:
            return "Valid"
        return "; ".join(f"{e.path}: {e.message}" for e in self.errors)
