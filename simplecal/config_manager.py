"""Configuration management for simplecal."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


@dataclass
class RecurrenceConfig:
    """Configuration for recurrence expansion.

    Consolidates all expansion-related settings with explicit defaults.
    """

    # Safety cap on occurrences produced for one series in one window
    max_occurrences_per_window: int = 10000
    # Degrade malformed series to a single instance during batch expansion
    expansion_fallback: bool = True
    # Whole months shown on each side of a month view
    default_view_months: int = 1

    @classmethod
    def from_settings(cls, settings: Any) -> RecurrenceConfig:
        """Extract recurrence configuration from a settings object or dict.

        Args:
            settings: Configuration object or mapping with recurrence settings

        Returns:
            RecurrenceConfig with values from settings or defaults
        """
        defaults = cls()
        return cls(
            max_occurrences_per_window=get_config_value(
                settings, "max_occurrences_per_window", defaults.max_occurrences_per_window
            ),
            expansion_fallback=get_config_value(
                settings, "expansion_fallback", defaults.expansion_fallback
            ),
            default_view_months=get_config_value(
                settings, "default_view_months", defaults.default_view_months
            ),
        )

    @classmethod
    def from_env(cls, env_file_path: Path | None = None) -> RecurrenceConfig:
        """Build configuration from the environment (and optional .env defaults)."""
        return cls.from_settings(ConfigManager(env_file_path).load_full_config())


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []

        try:
            content = self.env_file_path.read_text(encoding="utf-8")
        except OSError:
            logger.warning("Failed to read .env file %s", self.env_file_path, exc_info=True)
            return []

        for raw_line in content.splitlines():
            line = raw_line.strip()

            if not line or line.startswith("#") or "=" not in line:
                continue

            key, val = line.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")

            if key and key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - SIMPLECAL_MAX_OCCURRENCES -> 'max_occurrences_per_window' (positive int)
        - SIMPLECAL_EXPANSION_FALLBACK -> 'expansion_fallback' (bool)
        - SIMPLECAL_VIEW_PADDING_MONTHS -> 'default_view_months' (int >= 0)
        - SIMPLECAL_STORE_PATH -> 'store_path'

        Returns:
            Configuration dictionary
        """
        cfg: dict[str, Any] = {}

        max_occurrences = os.environ.get("SIMPLECAL_MAX_OCCURRENCES")
        if max_occurrences:
            try:
                value = int(max_occurrences)
                if value < 1:
                    raise ValueError(value)
                cfg["max_occurrences_per_window"] = value
            except ValueError:
                logger.warning("Invalid SIMPLECAL_MAX_OCCURRENCES=%r; ignoring", max_occurrences)

        fallback = os.environ.get("SIMPLECAL_EXPANSION_FALLBACK")
        if fallback:
            if fallback.strip().lower() in _TRUTHY:
                cfg["expansion_fallback"] = True
            elif fallback.strip().lower() in _FALSY:
                cfg["expansion_fallback"] = False
            else:
                logger.warning("Invalid SIMPLECAL_EXPANSION_FALLBACK=%r; ignoring", fallback)

        padding = os.environ.get("SIMPLECAL_VIEW_PADDING_MONTHS")
        if padding:
            try:
                value = int(padding)
                if value < 0:
                    raise ValueError(value)
                cfg["default_view_months"] = value
            except ValueError:
                logger.warning("Invalid SIMPLECAL_VIEW_PADDING_MONTHS=%r; ignoring", padding)

        store_path = os.environ.get("SIMPLECAL_STORE_PATH")
        if store_path:
            cfg["store_path"] = store_path

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment.

        Returns:
            Configuration dictionary
        """
        self.load_env_file()
        return self.build_config_from_env()


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get configuration value supporting both dict and dataclass-like objects.

    Args:
        config: Configuration object (dict or object with attributes)
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    if config is None:
        return default
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)
