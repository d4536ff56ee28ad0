"""Configuration management for Cookie Keeper."""

import json
import logging
from pathlib import Path
from typing import Any

from .constants import (
    CONFIG_FILE,
    CONFIG_VERSION,
    DEFAULT_SETTINGS,
    ERASE_CATEGORIES,
    PROTECTED_CATEGORIES,
    REQUIRED_ERASE_CATEGORIES,
)

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration is invalid."""
    pass


class ConfigManager:
    """Manages application configuration loading, validation, and persistence."""

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or CONFIG_FILE
        self._config: dict[str, Any] = {}
        self.load()

    def _create_default_config(self) -> dict[str, Any]:
        """Generate default configuration."""
        return {
            "version": CONFIG_VERSION,
            "settings": {
                key: list(value) if isinstance(value, list) else value
                for key, value in DEFAULT_SETTINGS.items()
            },
        }

    def _validate_settings(self, settings: dict[str, Any]) -> list[str]:
        """Validate the settings block and return list of errors."""
        errors = []

        display_cap = settings.get("display_cap", DEFAULT_SETTINGS["display_cap"])
        if not isinstance(display_cap, int) or isinstance(display_cap, bool) or display_cap < 1:
            errors.append("'display_cap' must be a positive integer")

        since = settings.get("since_epoch_millis", DEFAULT_SETTINGS["since_epoch_millis"])
        if not isinstance(since, int) or isinstance(since, bool) or since < 0:
            errors.append("'since_epoch_millis' must be a non-negative integer")

        categories = settings.get("erase_categories", DEFAULT_SETTINGS["erase_categories"])
        if not isinstance(categories, list):
            errors.append("'erase_categories' must be a list")
        elif not all(isinstance(category, str) for category in categories):
            errors.append("'erase_categories' must be a list of strings")
        else:
            for category in categories:
                if category in PROTECTED_CATEGORIES:
                    errors.append(f"Category '{category}' must never be erased")
                elif category not in ERASE_CATEGORIES:
                    errors.append(
                        f"Unknown category '{category}': must be one of "
                        f"{', '.join(sorted(ERASE_CATEGORIES))}"
                    )
            missing = REQUIRED_ERASE_CATEGORIES - set(categories)
            if missing:
                errors.append(f"'erase_categories' must include {', '.join(sorted(missing))}")

        return errors

    def _validate_config(self, config: Any) -> list[str]:
        """Validate configuration and return list of errors."""
        if not isinstance(config, dict):
            return ["Configuration must be a JSON object"]

        errors = []

        if not isinstance(config.get("version"), int):
            errors.append("Missing or invalid 'version' field")

        settings = config.get("settings")
        if not isinstance(settings, dict):
            errors.append("Missing or invalid 'settings' field")
        else:
            errors.extend(self._validate_settings(settings))

        return errors

    def load(self) -> None:
        """Load configuration from file, creating defaults if needed."""
        if not self.config_path.exists():
            logger.info("Config file not found, creating defaults at %s", self.config_path)
            self._config = self._create_default_config()
            self.save()
            return

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file: {e}") from e
        except UnicodeDecodeError as e:
            raise ConfigError(f"Config file is not valid UTF-8: {e}") from e

        errors = self._validate_config(loaded_config)
        if errors:
            for error in errors:
                logger.error("Config validation error: %s", error)
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")

        self._config = loaded_config
        logger.debug("Configuration loaded from %s", self.config_path)

    def save(self) -> None:
        """Save current configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump(self._config, f, indent=2)
        logger.debug("Configuration saved to %s", self.config_path)

    @property
    def settings(self) -> dict[str, Any]:
        """Return application settings, with defaults for missing keys."""
        merged = dict(DEFAULT_SETTINGS)
        merged.update(self._config.get("settings", {}))
        return merged

    @property
    def display_cap(self) -> int:
        """Return the maximum number of sites listed in the popup."""
        return self.settings["display_cap"]

    @property
    def erase_categories(self) -> frozenset[str]:
        """Return the categories handed to the bulk eraser."""
        return frozenset(self.settings["erase_categories"])

    @property
    def since_epoch_millis(self) -> int:
        """Return the bulk erase start time."""
        return self.settings["since_epoch_millis"]
