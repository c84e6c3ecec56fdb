"""Config module - discovery service options."""

from .schema import (
    DEFAULT_BROADCAST_ADDRESS,
    DEFAULT_DISCOVER_INTERVAL,
    DEFAULT_DISCOVERED_TTL,
    DiscoveryConfig,
    ValidationError,
    ValidationResult,
)
from .parser import load_config, merge_overrides, parse_config_data
from .validator import validate_config

__all__ = [
    "DEFAULT_BROADCAST_ADDRESS",
    "DEFAULT_DISCOVER_INTERVAL",
    "DEFAULT_DISCOVERED_TTL",
    "DiscoveryConfig",
    "ValidationError",
    "ValidationResult",
    "load_config",
    "merge_overrides",
    "parse_config_data",
    "validate_config",
]
