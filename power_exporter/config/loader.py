"""
Configuration loader with file reading and validation.
"""

from pathlib import Path
from typing import Any

import yaml

from ..logging import get_logger
from .schema import Config

logger = get_logger("config.loader")


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


class ConfigLoader:
    """
    Loads and validates configuration from YAML files or strings.

    Usage:
        loader = ConfigLoader()
        config = loader.load_file("/usr/local/etc/power-exporter.yml")
        # or
        config = loader.load_string(config_text)
    """

    # Known keys for each section
    KNOWN_KEYS = {
        "prometheus": {"enabled", "address", "port", "path"},
        "pushgateway": {"enabled", "url", "job", "username", "password", "timeout"},
        "influxdb": {"enabled", "url", "token", "org", "bucket", "measurement", "timeout"},
        "mqtt": {
            "enabled",
            "host",
            "port",
            "username",
            "password",
            "client_id",
            "topic_prefix",
            "qos",
            "retain",
            "keepalive",
        },
        "logging": {
            "level",
            "file",
            "file_level",
            "file_max_size",
            "file_keep",
            "colors",
            "format",
        },
    }

    def __init__(self):
        self.last_document: dict[str, Any] | None = None

    def load_file(self, path: str | Path) -> Config:
        """
        Load configuration from a file.

        Args:
            path: Path to the configuration file

        Returns:
            Validated Config object

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.is_file():
            raise ConfigError(f"Not a file: {path}")

        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to read configuration {path}: {e}") from e

        return self.load_string(source, filename=str(path))

    def load_string(self, source: str, filename: str = "<string>") -> Config:
        """
        Load configuration from a YAML string.

        Args:
            source: Configuration source text
            filename: Filename for error messages

        Returns:
            Validated Config object

        Raises:
            ConfigError: If configuration cannot be parsed
        """
        try:
            document = yaml.safe_load(source)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse {filename}: {e}") from e

        if document is None:
            logger.debug(f"{filename} is empty, using defaults")
            document = {}

        if not isinstance(document, dict):
            raise ConfigError(
                f"Failed to load {filename}: top level must be a mapping, "
                f"got {type(document).__name__}"
            )

        self.last_document = document

        try:
            return Config.from_dict(document)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration in {filename}: {e}") from e

    def validate(self, config: Config) -> list[str]:
        """
        Validate configuration and return list of warnings.

        Args:
            config: Configuration to validate

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []

        if self.last_document:
            warnings.extend(self._check_unknown_keys(self.last_document))

        if not config.any_sink_enabled:
            warnings.append("No sink is enabled; readings will not be exported anywhere")

        if config.prometheus.enabled and not 0 < config.prometheus.port < 65536:
            warnings.append(f"Prometheus port {config.prometheus.port} is out of range")

        if config.pushgateway.enabled and not config.pushgateway.url:
            warnings.append("Pushgateway is enabled but no url is configured")

        if config.influxdb.enabled:
            for key in ("url", "token", "org", "bucket"):
                if not getattr(config.influxdb, key):
                    warnings.append(f"InfluxDB is enabled but '{key}' is not configured")

        if config.mqtt.enabled and config.mqtt.qos not in (0, 1, 2):
            warnings.append(f"MQTT qos must be 0, 1 or 2, got {config.mqtt.qos}")

        if config.mqtt.enabled and any(c in config.mqtt.topic_prefix for c in "+#"):
            warnings.append(
                f"MQTT topic_prefix '{config.mqtt.topic_prefix}' contains a wildcard (+ or #); "
                "publishing to it will fail"
            )

        return warnings

    def _check_unknown_keys(self, document: dict[str, Any]) -> list[str]:
        """Check for unknown keys in the parsed document."""
        warnings = []

        for key, value in document.items():
            if key in Config.TOP_LEVEL:
                continue

            known = self.KNOWN_KEYS.get(key)
            if known is None:
                warnings.append(f"Unknown top-level key '{key}'")
                continue

            if isinstance(value, dict):
                for nested in value:
                    if nested not in known:
                        warnings.append(f"Unknown key '{nested}' in {key} section")

        return warnings


def load_config(path: str | Path) -> Config:
    """
    Convenience function to load configuration from a file.

    Args:
        path: Path to the configuration file

    Returns:
        Validated Config object
    """
    loader = ConfigLoader()
    return loader.load_file(path)
