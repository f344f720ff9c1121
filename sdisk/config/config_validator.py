"""Configuration validation for sdisk."""

from typing import Any, Dict

from ..core.errors import ConfigError


class ConfigValidator:
    """Validates sdisk configuration."""

    KNOWN_SECTIONS = ['scan', 'stale', 'top', 'clean', 'logging']
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']
    REFERENCES = ['modified', 'accessed']

    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data.

        Args:
            config: Configuration dictionary to validate. Missing sections
                and keys are allowed; defaults fill them in later.

        Raises:
            ConfigError: If configuration is invalid.
        """
        self._validate_structure(config)
        self._validate_scan(config.get('scan') or {})
        self._validate_stale(config.get('stale') or {})
        self._validate_count('top', 'count', (config.get('top') or {}).get('count'))
        self._validate_count('clean', 'limit', (config.get('clean') or {}).get('limit'))
        self._validate_logging(config.get('logging') or {})

    def _validate_structure(self, config: Dict[str, Any]) -> None:
        """Validate basic configuration structure.

        Raises:
            ConfigError: If the document or a section is not a mapping, or
                a section is unknown.
        """
        if not isinstance(config, dict):
            raise ConfigError("Configuration must be a mapping")

        unknown = [section for section in config if section not in self.KNOWN_SECTIONS]
        if unknown:
            raise ConfigError(f"Unknown configuration sections: {unknown}")

        for section, value in config.items():
            if value is not None and not isinstance(value, dict):
                raise ConfigError(f"Configuration section '{section}' must be a mapping")

    def _validate_scan(self, scan: Dict[str, Any]) -> None:
        for key in ('follow_symlinks', 'stay_on_device'):
            if key in scan and not isinstance(scan[key], bool):
                raise ConfigError(f"scan.{key} must be true or false, got {scan[key]!r}")

        max_depth = scan.get('max_depth')
        if max_depth is not None and (not _is_int(max_depth) or max_depth < 0):
            raise ConfigError(f"scan.max_depth must be a non-negative integer, got {max_depth!r}")

        workers = scan.get('workers')
        if workers is not None and (not _is_int(workers) or workers < 1):
            raise ConfigError(f"scan.workers must be a positive integer, got {workers!r}")

    def _validate_stale(self, stale: Dict[str, Any]) -> None:
        days = stale.get('days')
        if days is not None and (isinstance(days, bool) or not isinstance(days, (int, float)) or days < 0):
            raise ConfigError(f"stale.days must be a non-negative number, got {days!r}")

        reference = stale.get('reference')
        if reference is not None and reference not in self.REFERENCES:
            raise ConfigError(f"stale.reference must be one of {self.REFERENCES}, got {reference!r}")

    def _validate_count(self, section: str, key: str, value: Any) -> None:
        if value is not None and (not _is_int(value) or value < 0):
            raise ConfigError(f"{section}.{key} must be a non-negative integer, got {value!r}")

    def _validate_logging(self, logging_config: Dict[str, Any]) -> None:
        level = logging_config.get('level')
        if level is not None and str(level).upper() not in self.LOG_LEVELS:
            raise ConfigError(f"logging.level must be one of {self.LOG_LEVELS}, got {level!r}")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
