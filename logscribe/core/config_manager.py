"""Thread-safe singleton configuration manager for LogScribe."""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from logscribe.core.exceptions import ConfigError

logger = logging.getLogger("logscribe")

AI_PROVIDERS = ("deepseek", "openrouter", "gemini")
PROVIDERS = ("machine",) + AI_PROVIDERS


# Default configuration template
DEFAULT_CONFIG = {
    "app": {
        "version": "1.0.0",
        "log_level": "INFO",
    },
    "translation": {
        "provider": "machine",
        "target_lang": "zh-CN",
        "providers": {
            "deepseek": {"api_key": "", "model": "deepseek-chat"},
            "openrouter": {"api_key": "", "model": "google/gemini-2.0-flash-001"},
            "gemini": {"api_key": "", "model": "gemini-1.5-flash"},
        },
    },
    "display": {
        "word_wrap_width": 80,
    },
    "cache": {
        "duration_minutes": 30,
        "db_path": "db/cache.db",
    },
    "reddit": {
        "max_retries": 3,
        "mock_mode": False,
    },
    "security": {
        "mask_logs": True,
    },
}



def _validate_provider(value: Any) -> Any:
    if value not in PROVIDERS:
        logger.warning(f"Invalid provider '{value}'. Must be one of {PROVIDERS}. Ignoring.")
        return None
    return value


def _min_int(minimum: int) -> Callable[[Any], Optional[int]]:
    """Validator that coerces to int and raises values below `minimum` to it."""

    def validate(value: Any) -> Optional[int]:
        try:
            number = int(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid integer '{value}'. Ignoring.")
            return None
        if number < minimum:
            logger.warning(f"Value {number} < {minimum}. Forcing to {minimum}.")
            return minimum
        return number

    return validate


# Keys checked by update(); a validator returning None drops the change.
VALIDATORS: dict[str, Callable[[Any], Any]] = {
    "translation.provider": _validate_provider,
    "display.word_wrap_width": _min_int(20),
    "cache.duration_minutes": _min_int(1),
}


class ConfigManager:
    """Process-wide settings backed by config/settings.yaml.

    The file is created from DEFAULT_CONFIG on first run. Keys are read and
    written with dot notation ("display.word_wrap_width"). All access goes
    through an RLock so worker threads can read settings safely.
    """

    _instance = None
    _lock = threading.RLock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, '_initialized'):
            return

        with self._lock:
            if hasattr(self, '_initialized'):
                return

            self.PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
            self.CONFIG_PATH = self.PROJECT_ROOT / "config" / "settings.yaml"
            self._config = {}
            self._instance_lock = threading.RLock()
            self._load_or_create_config()
            self._initialized = True

    def _load_or_create_config(self):
        if not self.CONFIG_PATH.exists():
            logger.info(f"No configuration at {self.CONFIG_PATH}, writing defaults")
            self._config = self._deep_copy(DEFAULT_CONFIG)
            self.save()
            return

        try:
            with open(self.CONFIG_PATH, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {self.CONFIG_PATH}")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Could not read {self.CONFIG_PATH}: {e}. Using defaults")
            self._config = self._deep_copy(DEFAULT_CONFIG)

    def get(self, key: str, default=None) -> Any:
        """Look up a dot-notation key, returning `default` when any part is missing.

        Example:
            >>> config.get("translation.provider")
            'machine'
        """
        with self._instance_lock:
            value = self._config
            for part in key.split('.'):
                if not isinstance(value, dict) or part not in value:
                    return default
                value = value[part]
            return value

    def set(self, key: str, value: Any) -> None:
        """Set a dot-notation key in memory. Call save() to persist."""
        with self._instance_lock:
            *parents, leaf = key.split('.')
            target = self._config
            for part in parents:
                target = target.setdefault(part, {})
            target[leaf] = value

    def update(self, changes: dict) -> None:
        """Validate and apply a flat dict of dot-notation changes, then save once."""
        with self._instance_lock:
            for key, value in changes.items():
                validator = VALIDATORS.get(key)
                if validator is not None:
                    value = validator(value)
                    if value is None:
                        continue
                self.set(key, value)
            self.save()

    def save(self) -> None:
        with self._instance_lock:
            try:
                self.CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
                with open(self.CONFIG_PATH, 'w', encoding='utf-8') as f:
                    yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)
                logger.debug(f"Saved configuration to {self.CONFIG_PATH}")
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to save configuration: {e}")
                raise ConfigError(f"Failed to save configuration: {e}")

    def get_db_path(self) -> Path:
        """Absolute path of the cache database (relative paths resolve from the project root)."""
        return self.PROJECT_ROOT / self.get("cache.db_path", "db/cache.db")

    def get_translation_settings(self) -> tuple[str, str, str]:
        """Resolve (provider, api_key, model_name) for the configured provider.

        api_key and model_name are empty strings for the machine provider.
        """
        with self._instance_lock:
            provider = self.get("translation.provider", "machine")
            if provider not in AI_PROVIDERS:
                return provider, "", ""
            settings = self.get(f"translation.providers.{provider}", {}) or {}
            return provider, settings.get("api_key") or "", settings.get("model") or ""

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (for testing)."""
        with cls._lock:
            cls._instance = None

    @staticmethod
    def _deep_copy(obj):
        if isinstance(obj, dict):
            return {k: ConfigManager._deep_copy(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [ConfigManager._deep_copy(item) for item in obj]
        return obj
