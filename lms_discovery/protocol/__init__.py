"""Protocol module - LMS discovery datagram codec."""

from .codec import (
    DISCOVERY_PORT,
    DISCOVERY_REQUEST,
    ServerInfo,
    decode_response,
    encode_request,
    encode_response,
)

__all__ = [
    "DISCOVERY_PORT",
    "DISCOVERY_REQUEST",
    "ServerInfo",
    "decode_response",
    "encode_request",
    "encode_response",
]
