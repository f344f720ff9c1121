"""Configuration management for sdisk."""

import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

from ..core.errors import ConfigError
from .config_validator import ConfigValidator

DEFAULTS: Dict[str, Dict[str, Any]] = {
    'scan': {
        'follow_symlinks': False,
        'stay_on_device': True,
        'max_depth': None,
        'workers': 1,
    },
    'stale': {
        'days': 90,
        'reference': 'modified',
    },
    'top': {
        'count': 20,
    },
    'clean': {
        'limit': 100,
    },
    'logging': {
        'level': 'WARNING',
        'file': None,
    },
}


class ConfigManager:
    """Loads, validates and serves sdisk configuration."""

    DEFAULT_CONFIG_LOCATIONS = [
        "sdisk.yaml",
        "sdisk.yml",
        os.path.expanduser("~/.sdisk/config.yaml"),
        os.path.expanduser("~/.sdisk/config.yml"),
        "/etc/sdisk/config.yaml",
    ]

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config file. If not provided,
                        the default locations are searched and built-in
                        defaults are used when none exists.
        """
        self.config_path = config_path
        self.config_data: Dict[str, Any] = {}
        self.source: Optional[str] = None
        self.validator = ConfigValidator()
        self.logger = logging.getLogger(__name__)

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file, falling back to defaults.

        Returns:
            Dictionary containing configuration data.

        Raises:
            ConfigError: If an explicit config file is missing or any
                config file is invalid.
        """
        config_file = self._find_config_file()
        self.config_data = {}

        if config_file:
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    self.config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in config file {config_file}: {e}") from e
            except OSError as e:
                raise ConfigError(f"Error reading config file {config_file}: {e}") from e
            self.source = config_file
            self.logger.debug(f"Loaded configuration from {config_file}")
        else:
            self.logger.debug("No configuration file found, using defaults")

        self.validator.validate(self.config_data)
        self._set_defaults()

        return self.config_data

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file.

        Returns:
            Path to configuration file, or None when no default location has one.

        Raises:
            ConfigError: If an explicitly requested file does not exist.
        """
        if self.config_path:
            if os.path.exists(self.config_path):
                return self.config_path
            raise ConfigError(f"Config file not found: {self.config_path}")

        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if os.path.exists(location):
                return location
        return None

    def _set_defaults(self):
        """Fill in default values for every missing setting."""
        for section, section_defaults in DEFAULTS.items():
            if self.config_data.get(section) is None:
                self.config_data[section] = {}
            for key, value in section_defaults.items():
                if self.config_data[section].get(key) is None:
                    self.config_data[section][key] = copy.deepcopy(value)

    def apply_overrides(self, overrides: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """Overlay values, typically from the command line, onto the loaded config.

        Args:
            overrides: Section -> key -> value. ``None`` values are ignored.

        Returns:
            The updated configuration.

        Raises:
            ConfigError: If the result is invalid.
        """
        if not self.config_data:
            self.load_config()

        for section, values in overrides.items():
            for key, value in values.items():
                if value is not None:
                    self.config_data.setdefault(section, {})[key] = value

        self.validator.validate(self.config_data)
        return self.config_data

    def get_scan_config(self) -> Dict[str, Any]:
        return self.config_data.get('scan', {})

    def get_stale_config(self) -> Dict[str, Any]:
        return self.config_data.get('stale', {})

    def get_top_config(self) -> Dict[str, Any]:
        return self.config_data.get('top', {})

    def get_clean_config(self) -> Dict[str, Any]:
        return self.config_data.get('clean', {})

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration.

        Returns:
            Logging configuration dictionary.
        """
        return self.config_data.get('logging', {})
