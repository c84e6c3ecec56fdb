"""Transport module - CLI control-channel liveness probing."""

from .liveness_probe import (
    DEFAULT_CONNECT_TIMEOUT,
    ControlConnection,
    LivenessProbe,
    TcpLivenessProbe,
)

__all__ = [
    "DEFAULT_CONNECT_TIMEOUT",
    "ControlConnection",
    "LivenessProbe",
    "TcpLivenessProbe",
]
