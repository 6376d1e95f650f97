"""
YAML helpers shared by settings and the polling job loader
"""

from pathlib import Path
from typing import Any

import yaml

CONFIG_ROOT = Path(__file__).resolve().parent.parent.parent / "config"


def resolve_config_path(filepath: str | Path) -> Path:
    """
    Resolve a config path.

    Absolute paths and paths that exist relative to the working directory are
    used as-is; anything else is looked up under the bundled ``config/`` dir.

    Example:
        >>> resolve_config_path("providers/polling.yaml")
        PosixPath('.../config/providers/polling.yaml')
    """
    path = Path(filepath)
    if path.is_absolute() or path.exists():
        return path
    parts = path.parts
    if parts and parts[0] == "config":
        path = Path(*parts[1:])
    return CONFIG_ROOT / path


def load_yaml(filepath: str | Path) -> dict[str, Any]:
    """
    Load YAML file and return as dictionary

    Args:
        filepath: Path to YAML file (relative or absolute)

    Returns:
        Dictionary with YAML data ({} for an empty document)

    Raises:
        FileNotFoundError: If file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If the top-level document is not a mapping
    """
    path = resolve_config_path(filepath)

    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {filepath}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML root must be a mapping: {filepath}")
    return data


def load_yaml_safe(filepath: str | Path) -> dict[str, Any]:
    """
    Load YAML file with fallback to empty dict if missing or unreadable

    Example:
        >>> config = load_yaml_safe("config/optional.yaml")
        >>> # Returns {} if file doesn't exist
    """
    try:
        return load_yaml(filepath)
    except (FileNotFoundError, ValueError, yaml.YAMLError):
        return {}
