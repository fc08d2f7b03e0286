"""Thread-safe singleton configuration manager for redditpost."""

import copy
import logging
import os
import threading
from pathlib import Path
from typing import Any

import yaml

from redditpost.core.exceptions import ConfigError

logger = logging.getLogger(__name__)


DEFAULT_CONFIG = {
    "app": {
        "version": "1.0.0",
        "log_level": "INFO",
    },
    "reddit": {
        "base_url": "https://www.reddit.com",
        "user_agent": "python:redditpost:v1.0.0 (by /u/redditpost)",
        "request_interval_sec": 2,
        "max_retries": 3,
        "timeout_sec": 30,
    },
    "comments": {
        "limit_per_request": 0,
    },
    "security": {
        "mask_logs": True,
    },
}


def app_home() -> Path:
    """Per-user directory for settings and logs.

    $REDDITPOST_HOME when set, otherwise ~/.redditpost.
    """
    override = os.environ.get("REDDITPOST_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".redditpost"


class ConfigManager:
    """Singleton holding settings.yaml, read with dot-notation keys.

    The file lives in app_home() unless config_path is given, and is written
    from DEFAULT_CONFIG on first use. Values can be changed in memory with
    set() and written back with save().
    """

    _instance = None
    _lock = threading.RLock()

    def __new__(cls, config_path=None):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path=None):
        if hasattr(self, '_initialized'):
            return

        with self._lock:
            if hasattr(self, '_initialized'):
                return
            self.CONFIG_PATH = Path(config_path) if config_path else app_home() / "settings.yaml"
            self._instance_lock = threading.RLock()
            self._config = self._load()
            self._initialized = True

    def _load(self) -> dict:
        if not self.CONFIG_PATH.exists():
            logger.info(f"Creating default configuration at {self.CONFIG_PATH}")
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            self.save()
            return self._config
        try:
            with open(self.CONFIG_PATH, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {self.CONFIG_PATH}")
            return loaded
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to read config at {self.CONFIG_PATH}: {e}")
            logger.warning("Using DEFAULT_CONFIG")
            return copy.deepcopy(DEFAULT_CONFIG)

    def get(self, key: str, default=None) -> Any:
        """Value at a dot-notation key, e.g. config.get("reddit.max_retries")."""
        with self._instance_lock:
            value = self._config
            for part in key.split('.'):
                if not isinstance(value, dict) or part not in value:
                    return default
                value = value[part]
            return value

    def set(self, key: str, value: Any) -> None:
        """Set a dot-notation key in memory; call save() to persist."""
        with self._instance_lock:
            *parents, last = key.split('.')
            target = self._config
            for part in parents:
                if not isinstance(target.get(part), dict):
                    target[part] = {}
                target = target[part]
            target[last] = value

    def save(self) -> None:
        """Write the current configuration to CONFIG_PATH.

        Raises:
            ConfigError: the file or its directory cannot be written
        """
        with self._instance_lock:
            try:
                self.CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
                with open(self.CONFIG_PATH, 'w', encoding='utf-8') as f:
                    yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)
                logger.debug(f"Saved configuration to {self.CONFIG_PATH}")
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to save configuration: {e}")
                raise ConfigError(f"Failed to save configuration: {e}")

    @classmethod
    def reset(cls) -> None:
        """Reset singleton instance (for testing)."""
        with cls._lock:
            cls._instance = None
