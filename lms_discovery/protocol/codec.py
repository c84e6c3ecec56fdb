"""Codec for the LMS UDP discovery protocol.

Clients broadcast a request on UDP port 3483: the marker ``e`` followed by
the null-terminated 4-character tags they want answered. Servers reply by
unicast with the marker ``E`` followed by tag-length-value triplets:

    +------+-----+-----------+
    | TAG  | LEN | VALUE     |
    | 4 B  | 1 B | LEN bytes |
    +------+-----+-----------+

See SlimDiscoveryApplet.lua in Logitech's squeezeplay for the client side.
"""

from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

# UDP port LMS listens on for discovery requests
DISCOVERY_PORT = 3483

REQUEST_MARKER = b"e"
RESPONSE_MARKER = b"E"

# Response tag -> ServerInfo field
TAG_FIELDS = {
    "IPAD": "address",
    "NAME": "name",
    "VERS": "version",
    "UUID": "unique_id",
    "JSON": "control_api_port",
    "CLIP": "control_channel_port",
}

REQUIRED_FIELDS = ("address", "name", "control_api_port")

_TLV_HEADER_SIZE = 5
_MAX_VALUE_LENGTH = 255


@dataclass(frozen=True)
class ServerInfo:
    """A media server as advertised in its discovery response."""
    address: str
    name: str
    control_api_port: str
    unique_id: str
    version: Optional[str] = None
    control_channel_port: Optional[str] = None

    @property
    def has_control_channel(self) -> bool:
        """Whether the server advertises a CLI port usable for liveness."""
        return bool(self.control_channel_port)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        version_str = f" v{self.version}" if self.version else ""
        return f"{self.name}{version_str} at {self.address}:{self.control_api_port}"


def encode_request() -> bytes:
    """Build the discovery request datagram.

    Asks for every tag this codec understands. The payload is constant.
    """
    return REQUEST_MARKER + b"".join(
        tag.encode("ascii") + b"\0" for tag in TAG_FIELDS
    )


DISCOVERY_REQUEST = encode_request()


def decode_response(
    data: bytes,
    sender_address: str,
    debug: Optional[Callable[[str], None]] = None,
) -> Optional[ServerInfo]:
    """Decode a discovery response datagram.

    Args:
        data: Raw datagram payload.
        sender_address: IP address the datagram came from. Used as the
            server address unless the response carries an IPAD tag.
        debug: Optional trace sink.

    Returns:
        ServerInfo, or None if the datagram is not a discovery response or
        lacks required fields. Never raises on malformed input.
    """
    if data[:1] != RESPONSE_MARKER:
        if debug:
            debug("Message is not a discovery response")
        return None

    values: dict[str, str] = {"address": sender_address}

    ptr = 1
    while len(data) - ptr >= _TLV_HEADER_SIZE:
        tag = data[ptr:ptr + 4].decode("ascii", errors="replace")
        length = data[ptr + 4]
        start = ptr + _TLV_HEADER_SIZE
        value = data[start:start + length].decode("utf-8", errors="replace")
        field_name = TAG_FIELDS.get(tag)
        if field_name:
            values[field_name] = value
        ptr = start + length

    missing = [name for name in REQUIRED_FIELDS if not values.get(name)]
    if missing:
        if debug:
            debug(
                "Message is discovery response but missing required info: "
                + ", ".join(missing)
            )
        return None

    return ServerInfo(
        address=values["address"],
        name=values["name"],
        control_api_port=values["control_api_port"],
        unique_id=values.get("unique_id") or values["name"],
        version=values.get("version"),
        control_channel_port=values.get("control_channel_port") or None,
    )


def encode_response(server: ServerInfo, include_address: bool = False) -> bytes:
    """Build the response datagram a server would send for ``server``.

    Args:
        server: Server to advertise.
        include_address: Also emit the IPAD tag.

    Raises:
        ValueError: If a value does not fit in a one-byte length.
    """
    fields = dict(server.to_dict())
    if not include_address:
        fields.pop("address")

    payload = bytearray(RESPONSE_MARKER)
    for tag, field_name in TAG_FIELDS.items():
        value = fields.get(field_name)
        if value is None:
            continue
        encoded = str(value).encode("utf-8")
        if len(encoded) > _MAX_VALUE_LENGTH:
            raise ValueError(
                f"Value for {tag} is {len(encoded)} bytes, max is {_MAX_VALUE_LENGTH}"
            )
        payload += tag.encode("ascii") + bytes([len(encoded)]) + encoded
    return bytes(payload)
