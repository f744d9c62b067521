"""Thread-safe singleton configuration manager for Feedglot."""

import copy
import logging
import threading
from pathlib import Path
from typing import Any, Optional

import yaml

from feedglot.core.exceptions import ConfigError

logger = logging.getLogger("feedglot")


# Default configuration template
DEFAULT_CONFIG = {
    "app": {
        "log_level": "INFO",
    },
    "api": {
        "base_url": "http://localhost:8080",
        "batch_translate_path": "/api/ai/translate/batch",
        "timeout": 120,
    },
    "translation": {
        "target_language": "en",
        "max_batch_size": 100,
    },
    "security": {
        "mask_logs": True,
    },
}

# Server-side hard limit for /ai/translate/batch
MAX_BATCH_SIZE_LIMIT = 100
MIN_API_TIMEOUT = 5


class ConfigManager:
    """Thread-safe singleton configuration manager.

    Manages application configuration with:
    - Singleton pattern ensuring only one instance exists
    - Thread-safe operations using RLock
    - Automatic settings.yaml creation if missing
    - Dot-notation key access (e.g., "api.base_url")
    - Validation rules for critical settings
    """

    _instance = None
    _lock = threading.RLock()

    def __new__(cls, config_path: Optional[Path] = None):
        """Ensure singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Location of settings.yaml. Only used on first
                initialization; defaults to PROJECT_ROOT/config/settings.yaml.
        """
        if hasattr(self, '_initialized'):
            return

        with self._lock:
            if hasattr(self, '_initialized'):
                return

            self.PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
            self.CONFIG_PATH = config_path or self.PROJECT_ROOT / "config" / "settings.yaml"

            self._config = {}
            self._instance_lock = threading.RLock()

            self._load_or_create_config()

            self._initialized = True

    def _load_or_create_config(self):
        """Load settings.yaml or create it from defaults."""
        if self.CONFIG_PATH.exists():
            try:
                with open(self.CONFIG_PATH, 'r', encoding='utf-8') as f:
                    self._config = yaml.safe_load(f) or {}
                logger.info(f"Loaded configuration from {self.CONFIG_PATH}")
            except yaml.YAMLError as e:
                logger.error(f"Failed to parse YAML at {self.CONFIG_PATH}: {e}")
                logger.warning("Using DEFAULT_CONFIG due to parse error")
                self._config = copy.deepcopy(DEFAULT_CONFIG)
        else:
            logger.info(f"Config file not found at {self.CONFIG_PATH}")
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            self.save()
            logger.info(f"Created default configuration at {self.CONFIG_PATH}")

    def get(self, key: str, default=None) -> Any:
        """Get configuration value using dot-notation key.

        Example:
            >>> config.get("translation.max_batch_size")
            100
        """
        with self._instance_lock:
            value = self._config
            for part in key.split('.'):
                if isinstance(value, dict) and part in value:
                    value = value[part]
                else:
                    return default
            return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot-notation key.

        Note: This does NOT save to disk. Use save() to persist changes.
        """
        with self._instance_lock:
            parts = key.split('.')
            target = self._config
            for part in parts[:-1]:
                if part not in target:
                    target[part] = {}
                target = target[part]
            target[parts[-1]] = value

    def update(self, changes: dict) -> None:
        """Batch update configuration from flat dict of dot-notation keys.

        Applies validation rules and saves to disk once after all updates.

        Validation Rules:
            - api.timeout: minimum 5 seconds
            - translation.max_batch_size: 1-100
            - translation.target_language: non-empty string
            - app.log_level: a standard logging level name
        """
        with self._instance_lock:
            validated_changes = {}
            for key, value in changes.items():
                validated_value = self._validate_key_value(key, value)
                if validated_value is not None:
                    validated_changes[key] = validated_value

            for key, value in validated_changes.items():
                self.set(key, value)

            self.save()

    def _validate_key_value(self, key: str, value: Any) -> Any:
        """Apply validation rules to key-value pair.

        Returns:
            Validated value or None if invalid (will be ignored)
        """
        if key == "api.timeout":
            try:
                timeout = int(value)
            except (TypeError, ValueError):
                logger.warning(f"Invalid api.timeout '{value}'. Must be int. Ignoring.")
                return None
            if timeout < MIN_API_TIMEOUT:
                logger.warning(f"api.timeout {timeout} < {MIN_API_TIMEOUT}. Forcing to {MIN_API_TIMEOUT}.")
                return MIN_API_TIMEOUT
            return timeout

        if key == "translation.max_batch_size":
            try:
                size = int(value)
            except (TypeError, ValueError):
                logger.warning(f"Invalid max_batch_size '{value}'. Must be int. Ignoring.")
                return None
            if not (1 <= size <= MAX_BATCH_SIZE_LIMIT):
                clamped = min(max(size, 1), MAX_BATCH_SIZE_LIMIT)
                logger.warning(f"max_batch_size {size} out of range. Forcing to {clamped}.")
                return clamped
            return size

        if key == "translation.target_language":
            if not isinstance(value, str) or not value.strip():
                logger.warning(f"Invalid target_language '{value}'. Ignoring.")
                return None
            return value.strip()

        if key == "app.log_level":
            level = str(value).upper()
            if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
                logger.warning(f"Invalid log level '{value}'. Ignoring.")
                return None
            return level

        return value

    def save(self) -> None:
        """Write current configuration to settings.yaml."""
        with self._instance_lock:
            try:
                self.CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
                with open(self.CONFIG_PATH, 'w', encoding='utf-8') as f:
                    yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)
                logger.debug(f"Saved configuration to {self.CONFIG_PATH}")
            except OSError as e:
                logger.error(f"Failed to save configuration: {e}")
                raise ConfigError(f"Failed to save configuration: {e}")

    @classmethod
    def reset(cls) -> None:
        """Reset singleton instance (for testing)."""
        with cls._lock:
            cls._instance = None
