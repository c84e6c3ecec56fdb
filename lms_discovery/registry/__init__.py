"""Registry module - presence tracking of discovered servers."""

from .presence import PresenceRegistry, RegistryEntry

__all__ = [
    "PresenceRegistry",
    "RegistryEntry",
]
