"""
Settings for the screener MCP server.

Resolution order: built-in defaults, then the first settings.yaml found, then
environment variables. Values are read once per process (or on reload()).
"""
import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from shared.logging_utils import get_library_logger

logger = get_library_logger(__name__)

DEFAULTS: Dict[str, Any] = {
    "cache": {
        "ttl_seconds": 300,
        "cleanup_interval_seconds": 60,
    },
    "rate_limit": {
        "requests_per_minute": 10,
    },
    "provider": {
        "base_url": "https://scanner.tradingview.com",
        "timeout_seconds": 10.0,
    },
    "logging": {
        "level": "INFO",
    },
}

# Environment variable -> (dotted settings path, type)
ENV_OVERRIDES = {
    "CACHE_TTL_SECONDS": ("cache.ttl_seconds", int),
    "CACHE_CLEANUP_INTERVAL_SECONDS": ("cache.cleanup_interval_seconds", int),
    "RATE_LIMIT_RPM": ("rate_limit.requests_per_minute", int),
    "TRADINGVIEW_API_TIMEOUT": ("provider.timeout_seconds", float),
    "TRADINGVIEW_API_BASE": ("provider.base_url", str),
    "LOG_LEVEL": ("logging.level", str),
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursive dict merge; override wins on conflicts."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _find_settings_file() -> Optional[Path]:
    candidates = (
        Path.home() / ".tradingview-mcp" / "settings.yaml",
        Path("config/settings.yaml"),
    )
    return next((path for path in candidates if path.exists()), None)


class Config:
    """
    Singleton holding the merged settings tree.
    """
    _instance = None
    _config: Optional[Dict[str, Any]] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._config is None:
            self._load_config()

    def _read_settings_file(self) -> Dict[str, Any]:
        path = _find_settings_file()
        if path is None:
            logger.debug("No settings.yaml found, using defaults")
            return {}
        try:
            with open(path, 'r') as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Could not read settings from {path}: {e}")
            return {}
        logger.info(f"Loaded settings from {path}")
        return loaded

    def _load_config(self):
        self._config = _merge(copy.deepcopy(DEFAULTS), self._read_settings_file())
        self._apply_env_overrides()

    def _apply_env_overrides(self):
        for env_name, (key_path, cast) in ENV_OVERRIDES.items():
            raw = os.environ.get(env_name)
            if not raw:
                continue
            try:
                value = cast(raw)
            except ValueError:
                logger.warning(f"Ignoring invalid {env_name}={raw!r}")
                continue
            self._set(key_path, value)

    def _set(self, key_path: str, value: Any):
        *parents, leaf = key_path.split('.')
        node = self._config
        for key in parents:
            node = node.setdefault(key, {})
        node[leaf] = value

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Look up a setting by dotted path, e.g. "cache.ttl_seconds".

        Returns default when any segment is missing.
        """
        node: Any = self._config
        for key in key_path.split('.'):
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    @property
    def cache_ttl_seconds(self) -> int:
        return int(self.get("cache.ttl_seconds", 300))

    @property
    def cache_cleanup_interval_seconds(self) -> int:
        return int(self.get("cache.cleanup_interval_seconds", 60))

    @property
    def rate_limit_rpm(self) -> int:
        return int(self.get("rate_limit.requests_per_minute", 10))

    @property
    def provider_base_url(self) -> str:
        return self.get("provider.base_url", DEFAULTS["provider"]["base_url"])

    @property
    def provider_timeout_seconds(self) -> float:
        return float(self.get("provider.timeout_seconds", 10.0))

    @property
    def log_level(self) -> str:
        return str(self.get("logging.level", "INFO")).upper()

    def reload(self):
        """Re-read the settings file and environment."""
        self._config = None
        self._load_config()
        logger.info("Settings reloaded")


def get_config() -> Config:
    return Config()
