"""Discovery module - UDP broadcast transport and scheduling."""

from .udp_transport import BroadcastTransport
from .scheduler import DiscoveryScheduler

__all__ = [
    "BroadcastTransport",
    "DiscoveryScheduler",
]
