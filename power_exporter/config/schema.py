"""
Configuration schema with dataclasses for validation and type safety.

Defines all configuration sections, their fields and defaults. Each section
is built from the corresponding mapping of the parsed YAML document.
"""

import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..const import (
    BATTERY_PREFIX,
    DEFAULT_INFLUXDB_MEASUREMENT,
    DEFAULT_INTERVAL,
    DEFAULT_MQTT_KEEPALIVE,
    DEFAULT_MQTT_PORT,
    DEFAULT_PROMETHEUS_PATH,
    DEFAULT_PROMETHEUS_PORT,
    DEFAULT_PUSHGATEWAY_JOB,
    POWER_SUPPLY_PATH,
)
from ..logging import LogConfig


class RetainMode(Enum):
    """MQTT retain message modes."""

    OFF = "off"  # Don't retain any messages
    ONLINE = "online"  # Only retain availability (LWT) status
    FULL = "full"  # Retain all messages (default)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a nested section mapping, treating a missing/null section as empty."""
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"'{name}' must be a mapping, got {type(value).__name__}")
    return value


def _get_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise TypeError(f"'{key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise TypeError(f"'{key}' must be an integer, got {value!r}") from None


def _get_float(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise TypeError(f"'{key}' must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise TypeError(f"'{key}' must be a number, got {value!r}") from None


def _get_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("on", "yes", "true", "1"):
        return True
    if isinstance(value, str) and value.lower() in ("off", "no", "false", "0"):
        return False
    raise TypeError(f"'{key}' must be a boolean, got {value!r}")


def _get_str(data: dict[str, Any], key: str, default: str | None) -> str | None:
    value = data.get(key)
    if value is None:
        return default
    return str(value)


@dataclass
class PrometheusConfig:
    """Prometheus scrape endpoint configuration."""

    enabled: bool = True
    address: str = ""  # Empty binds all interfaces
    port: int = DEFAULT_PROMETHEUS_PORT
    path: str = DEFAULT_PROMETHEUS_PATH

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PrometheusConfig":
        """Create PrometheusConfig from the 'prometheus' section."""
        port = _get_int(data, "port", DEFAULT_PROMETHEUS_PORT)
        path = _get_str(data, "path", DEFAULT_PROMETHEUS_PATH) or DEFAULT_PROMETHEUS_PATH
        if not path.startswith("/"):
            path = f"/{path}"

        return cls(
            enabled=_get_bool(data, "enabled", True),
            address=_get_str(data, "address", "") or "",
            port=port or DEFAULT_PROMETHEUS_PORT,
            path=path,
        )


@dataclass
class PushgatewayConfig:
    """Prometheus Pushgateway configuration."""

    enabled: bool = False
    url: str = "http://localhost:9091"
    job: str = DEFAULT_PUSHGATEWAY_JOB
    username: str | None = None
    password: str | None = None
    timeout: float = 10.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PushgatewayConfig":
        """Create PushgatewayConfig from the 'pushgateway' section."""
        return cls(
            enabled=_get_bool(data, "enabled", False),
            url=_get_str(data, "url", "http://localhost:9091") or "",
            job=_get_str(data, "job", DEFAULT_PUSHGATEWAY_JOB) or DEFAULT_PUSHGATEWAY_JOB,
            username=_get_str(data, "username", None),
            password=_get_str(data, "password", None),
            timeout=_get_float(data, "timeout", 10.0),
        )


@dataclass
class InfluxDBConfig:
    """InfluxDB v2 write configuration."""

    enabled: bool = False
    url: str = "http://localhost:8086"
    token: str = ""
    org: str = ""
    bucket: str = ""
    measurement: str = DEFAULT_INFLUXDB_MEASUREMENT
    timeout: int = 10_000  # milliseconds

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InfluxDBConfig":
        """Create InfluxDBConfig from the 'influxdb' section."""
        return cls(
            enabled=_get_bool(data, "enabled", False),
            url=_get_str(data, "url", "http://localhost:8086") or "",
            token=_get_str(data, "token", "") or "",
            org=_get_str(data, "org", "") or "",
            bucket=_get_str(data, "bucket", "") or "",
            measurement=_get_str(data, "measurement", DEFAULT_INFLUXDB_MEASUREMENT)
            or DEFAULT_INFLUXDB_MEASUREMENT,
            timeout=_get_int(data, "timeout", 10_000),
        )


@dataclass
class MQTTConfig:
    """MQTT connection configuration."""

    enabled: bool = False
    host: str = "localhost"
    port: int = DEFAULT_MQTT_PORT
    username: str | None = None
    password: str | None = None
    client_id: str | None = None
    topic_prefix: str = "power_exporter"
    qos: int = 1
    retain: RetainMode = RetainMode.FULL
    keepalive: int = DEFAULT_MQTT_KEEPALIVE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MQTTConfig":
        """Create MQTTConfig from the 'mqtt' section."""
        retain_val = data.get("retain", "full")
        if isinstance(retain_val, bool):
            # YAML turns bare on/off into booleans
            retain_mode = RetainMode.FULL if retain_val else RetainMode.OFF
        else:
            retain_map = {
                "off": RetainMode.OFF,
                "online": RetainMode.ONLINE,
                "full": RetainMode.FULL,
                "on": RetainMode.FULL,
            }
            retain_str = str(retain_val).lower()
            if retain_str not in retain_map:
                raise ValueError(f"'retain' must be one of off, online, full; got {retain_val!r}")
            retain_mode = retain_map[retain_str]

        return cls(
            enabled=_get_bool(data, "enabled", False),
            host=_get_str(data, "host", "localhost") or "localhost",
            port=_get_int(data, "port", DEFAULT_MQTT_PORT),
            username=_get_str(data, "username", None),
            password=_get_str(data, "password", None),
            client_id=_get_str(data, "client_id", None),
            topic_prefix=_get_str(data, "topic_prefix", "power_exporter") or "power_exporter",
            qos=_get_int(data, "qos", 1),
            retain=retain_mode,
            keepalive=_get_int(data, "keepalive", DEFAULT_MQTT_KEEPALIVE),
        )

    def should_retain_data(self) -> bool:
        """Check if data messages should be retained."""
        return self.retain == RetainMode.FULL

    def should_retain_status(self) -> bool:
        """Check if availability messages should be retained."""
        return self.retain in (RetainMode.ONLINE, RetainMode.FULL)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"  # debug, info, warning, error
    file: str | None = None  # Log file path
    file_level: str = "debug"
    file_max_size: int = 10  # Max file size in MB
    file_keep: int = 5  # Number of backup files to keep
    colors: bool = True
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LoggingConfig":
        """Create LoggingConfig from the 'logging' section."""
        defaults = cls()
        return cls(
            level=_get_str(data, "level", defaults.level) or defaults.level,
            file=_get_str(data, "file", None),
            file_level=_get_str(data, "file_level", defaults.file_level) or defaults.file_level,
            file_max_size=_get_int(data, "file_max_size", defaults.file_max_size),
            file_keep=_get_int(data, "file_keep", defaults.file_keep),
            colors=_get_bool(data, "colors", defaults.colors),
            format=_get_str(data, "format", defaults.format) or defaults.format,
        )

    def to_log_config(self) -> LogConfig:
        """Effective logging settings when no command line flag overrides them."""
        log_config = LogConfig(
            console_level=self.level,
            console_colors=self.colors,
            format=self.format,
        )
        if self.file:
            log_config.use_file(self.file, self.file_level, self.file_max_size, self.file_keep)
        return log_config


@dataclass
class Config:
    """Complete application configuration."""

    interval: int = DEFAULT_INTERVAL
    host: str = field(default_factory=socket.gethostname)
    power_supply_path: str = POWER_SUPPLY_PATH
    battery_prefix: str = BATTERY_PREFIX

    prometheus: PrometheusConfig = field(default_factory=PrometheusConfig)
    pushgateway: PushgatewayConfig = field(default_factory=PushgatewayConfig)
    influxdb: InfluxDBConfig = field(default_factory=InfluxDBConfig)
    mqtt: MQTTConfig = field(default_factory=MQTTConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Known top-level scalar keys, used by the loader to report typos
    TOP_LEVEL = ("interval", "host", "power_supply_path", "battery_prefix")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from a parsed YAML document."""
        interval = _get_int(data, "interval", DEFAULT_INTERVAL)

        return cls(
            # Zero or negative falls back to the default interval
            interval=interval if interval > 0 else DEFAULT_INTERVAL,
            host=_get_str(data, "host", "") or socket.gethostname(),
            power_supply_path=_get_str(data, "power_supply_path", POWER_SUPPLY_PATH)
            or POWER_SUPPLY_PATH,
            battery_prefix=_get_str(data, "battery_prefix", BATTERY_PREFIX) or BATTERY_PREFIX,
            prometheus=PrometheusConfig.from_dict(_section(data, "prometheus")),
            pushgateway=PushgatewayConfig.from_dict(_section(data, "pushgateway")),
            influxdb=InfluxDBConfig.from_dict(_section(data, "influxdb")),
            mqtt=MQTTConfig.from_dict(_section(data, "mqtt")),
            logging=LoggingConfig.from_dict(_section(data, "logging")),
        )

    @property
    def push_sinks_enabled(self) -> bool:
        """Whether any sink that transmits on every tick is enabled."""
        return self.pushgateway.enabled or self.influxdb.enabled or self.mqtt.enabled

    @property
    def any_sink_enabled(self) -> bool:
        return self.prometheus.enabled or self.push_sinks_enabled
