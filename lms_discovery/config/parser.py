"""YAML configuration parser for the discovery service.

Parses YAML config files (or already-loaded mappings) into
DiscoveryConfig objects. Keys may use snake_case or the camelCase
option names of the JavaScript library.
"""

from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .schema import CAMEL_CASE_ALIASES, DiscoveryConfig


def load_config(file_path: Union[str, Path]) -> DiscoveryConfig:
    """Parse a YAML config file into a DiscoveryConfig.

    Args:
        file_path: Path to the YAML file.

    Returns:
        Parsed DiscoveryConfig. An empty file yields the defaults.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the YAML is malformed or has unknown keys.
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    if file_path.suffix not in (".yaml", ".yml"):
        raise ValueError(f"Expected .yaml or .yml file, got: {file_path.suffix}")

    with open(file_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Malformed YAML in {file_path}: {e}") from e

    if data is None:
        return DiscoveryConfig()

    return parse_config_data(data, source=str(file_path))


def parse_config_data(
    data: Optional[Mapping[str, Any]], source: str = "<inline>"
) -> DiscoveryConfig:
    """Build a DiscoveryConfig from a mapping, applying defaults.

    Args:
        data: Mapping of option names to values. None = all defaults.
        source: Source identifier for error messages.

    Raises:
        ValueError: If ``data`` is not a mapping, has unknown keys, or
            names the same option twice.
    """
    if data is None:
        return DiscoveryConfig()

    if not isinstance(data, Mapping):
        raise ValueError(f"Config must be a mapping, got {type(data).__name__}")

    known = DiscoveryConfig.__dataclass_fields__
    values: dict[str, Any] = {}
    for key, value in data.items():
        name = CAMEL_CASE_ALIASES.get(key, key)
        if name not in known:
            raise ValueError(f"Unknown config option '{key}' in {source}")
        if name in values:
            raise ValueError(f"Config option '{name}' given twice in {source}")
        values[name] = value

    return DiscoveryConfig(**values)


def merge_overrides(
    config: DiscoveryConfig, **overrides: Any
) -> DiscoveryConfig:
    """Return a copy of ``config`` with non-None overrides applied."""
    values = config.to_dict()
    values.update({k: v for k, v in overrides.items() if v is not None})
    return parse_config_data(values)
