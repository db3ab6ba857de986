"""
Config loader: reads config/default.yaml with environment variable overrides.

Usage:
    from config.loader import config

    config.get('server.port')             # -> 5001
    config.get('storage.songs_dir')       # -> 'runtime/songs'
    config['upload.max_mb']               # dict-style access also works

Environment variable override rules:
  - Direct named overrides (highest priority):
      PORT              -> server.port
      HOST              -> server.host
      SONGS_DIR         -> storage.songs_dir
      METADATA_FILENAME -> storage.metadata_filename
      MAX_UPLOAD_MB     -> upload.max_mb
      RATELIMIT_UPLOAD  -> upload.rate_limit
      RATELIMIT_ENABLED -> upload.rate_limit_enabled  (true/false string)
      LOG_LEVEL         -> logging.level
  - Generic double-underscore override:
      SERVER__PORT=5002 -> server.port = 5002
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# Path to the default config file (same directory as this module)
_DEFAULT_YAML = Path(__file__).parent / "default.yaml"

# Named env var → dotted config key mappings
_ENV_MAP = {
    "PORT":               ("server.port",               int),
    "HOST":               ("server.host",               str),
    "SONGS_DIR":          ("storage.songs_dir",         str),
    "METADATA_FILENAME":  ("storage.metadata_filename", str),
    "MAX_UPLOAD_MB":      ("upload.max_mb",             int),
    "RATELIMIT_UPLOAD":   ("upload.rate_limit",         str),
    "RATELIMIT_ENABLED":  ("upload.rate_limit_enabled", "bool"),
    "LOG_LEVEL":          ("logging.level",             str),
}


def _cast(value: str, cast_type) -> Any:
    """Cast a string env var value to the target type."""
    if cast_type == "bool":
        return value.lower() in ("true", "1", "yes")
    if cast_type == int:
        return int(value)
    return value  # str passthrough


def _deep_set(data: dict, dotted_key: str, value: Any) -> None:
    """Set a value in a nested dict using a dotted key path."""
    parts = dotted_key.split(".")
    node = data
    for part in parts[:-1]:
        node = node.setdefault(part, {})
    node[parts[-1]] = value


def _deep_get(data: dict, dotted_key: str, default: Any = None) -> Any:
    """Get a value from a nested dict using a dotted key path."""
    parts = dotted_key.split(".")
    node = data
    for part in parts:
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, returning empty dict if missing."""
    if not path.exists():
        logger.warning(f"Config file not found: {path}")
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _apply_env_overrides(data: dict) -> None:
    """Apply named env var overrides to the config dict (in-place)."""
    for env_key, (config_key, cast_type) in _ENV_MAP.items():
        value = os.environ.get(env_key)
        if value is not None:
            _deep_set(data, config_key, _cast(value, cast_type))

    # Generic double-underscore overrides: SERVER__PORT=5002 → server.port
    for env_key, value in os.environ.items():
        if "__" in env_key:
            parts = env_key.lower().split("__", 1)
            if len(parts) == 2:
                dotted = f"{parts[0]}.{parts[1]}"
                # Only override if the key already exists in the loaded config
                if _deep_get(data, dotted) is not None:
                    _deep_set(data, dotted, value)


class Config:
    """Config accessor loaded from YAML + env overrides."""

    def __init__(self, yaml_path: Path = _DEFAULT_YAML):
        self._yaml_path = yaml_path
        self._data = _load_yaml(yaml_path)
        _apply_env_overrides(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dotted key. Returns default if not found."""
        return _deep_get(self._data, key, default)

    def __getitem__(self, key: str) -> Any:
        value = _deep_get(self._data, key)
        if value is None:
            raise KeyError(f"Config key not found: {key}")
        return value

    def __contains__(self, key: str) -> bool:
        return _deep_get(self._data, key) is not None

    def as_dict(self) -> dict:
        """Return a copy of the full config dict."""
        return copy.deepcopy(self._data)

    def reload(self) -> None:
        """Reload config from YAML file and re-apply env overrides."""
        self._data = _load_yaml(self._yaml_path)
        _apply_env_overrides(self._data)


# Module-level singleton, import this everywhere:
#   from config.loader import config
config = Config()
