"""LAN discovery of Logitech Media Server instances."""

from .config import DiscoveryConfig, load_config
from .events import DISCOVERED, ERROR, LOST
from .protocol import DISCOVERY_PORT, ServerInfo
from .service import STATUS_RUNNING, STATUS_STOPPED, DiscoveryService

__version__ = "0.1.0"

__all__ = [
    "DISCOVERED",
    "DISCOVERY_PORT",
    "ERROR",
    "LOST",
    "STATUS_RUNNING",
    "STATUS_STOPPED",
    "DiscoveryConfig",
    "DiscoveryService",
    "ServerInfo",
    "load_config",
]
