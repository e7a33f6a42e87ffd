"""Configuration management for pdcli."""

import json
import os
from pathlib import Path
from typing import Any, Dict

# Keys accepted by `pd config set`, mapped to a parser for their value
CONFIG_KEYS = {
    "api_url": str,
    "page_size": int,
}

DEFAULT_PAGE_SIZE = 100


def get_config_file_path() -> Path:
    """Get the path to the pdcli configuration file."""
    # Use XDG_CONFIG_HOME if set, otherwise use ~/.config
    if "XDG_CONFIG_HOME" in os.environ:
        config_dir = Path(os.environ["XDG_CONFIG_HOME"]) / "pdcli"
    else:
        config_dir = Path.home() / ".config" / "pdcli"

    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir / "config.json"


def load_config() -> Dict[str, Any]:
    """Load configuration from the config file.

    Returns:
        Dictionary containing configuration values
    """
    config_file = get_config_file_path()

    if not config_file.exists():
        return {}

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        # If config file is corrupted or unreadable, return empty config
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config: Dict[str, Any]) -> None:
    """Save configuration to the config file.

    Args:
        config: Dictionary containing configuration values to save
    """
    config_file = get_config_file_path()

    try:
        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
    except OSError as e:
        raise RuntimeError(f"Failed to save configuration: {e}")


def set_config_value(key: str, raw_value: str) -> Any:
    """Validate and persist a single configuration value.

    Args:
        key: One of CONFIG_KEYS
        raw_value: Value as typed on the command line

    Returns:
        The parsed value that was stored

    Raises:
        ValueError: If the key is unknown or the value cannot be parsed
    """
    if key not in CONFIG_KEYS:
        raise ValueError(f"Unknown configuration key '{key}'. Valid keys: {', '.join(CONFIG_KEYS)}")
    value = CONFIG_KEYS[key](raw_value)
    if key == "page_size" and not 1 <= value <= 100:
        raise ValueError("page_size must be between 1 and 100")
    config = load_config()
    config[key] = value
    save_config(config)
    return value


def remove_config_value(key: str) -> bool:
    """Remove a configuration value. Returns True if it was set."""
    config = load_config()
    if key not in config:
        return False
    del config[key]
    save_config(config)
    return True


def get_page_size() -> int:
    """Get the configured page size for paginated requests."""
    value = load_config().get("page_size", DEFAULT_PAGE_SIZE)
    try:
        return max(1, min(int(value), 100))
    except (TypeError, ValueError):
        return DEFAULT_PAGE_SIZE
