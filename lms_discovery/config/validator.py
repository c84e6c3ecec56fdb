"""Configuration validator for the discovery service."""

from .schema import DiscoveryConfig, ValidationError, ValidationResult


def validate_config(config: DiscoveryConfig) -> ValidationResult:
    """Validate a DiscoveryConfig.

    Checks:
    - broadcast address is a non-empty string
    - durations are positive integers
    - discovered_ttl is larger than discover_interval
    - discovery port is a valid UDP port

    Args:
        config: Config to validate.

    Returns:
        ValidationResult with any errors.
    """
    errors: list[ValidationError] = []

    if not isinstance(config.broadcast_address, str) or not config.broadcast_address:
        errors.append(ValidationError(
            path="broadcast_address",
            message="must be a non-empty string.",
        ))

    for name in ("discovered_ttl", "discover_interval", "probe_timeout"):
        value = getattr(config, name)
        if not _is_number(value) or value <= 0:
            errors.append(ValidationError(
                path=name,
                message=f"must be a positive number of milliseconds, got {value!r}.",
            ))

    if (
        _is_number(config.discovered_ttl)
        and _is_number(config.discover_interval)
        and config.discovered_ttl <= config.discover_interval
    ):
        errors.append(ValidationError(
            path="discovered_ttl",
            message=(
                f"discovered_ttl ({config.discovered_ttl}) must be larger than "
                f"discover_interval ({config.discover_interval})."
            ),
        ))

    port = config.discovery_port
    if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
        errors.append(ValidationError(
            path="discovery_port",
            message=f"must be a port number between 1 and 65535, got {port!r}.",
        ))

    return ValidationResult(valid=len(errors) == 0, errors=errors)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
