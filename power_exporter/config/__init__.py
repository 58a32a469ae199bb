"""
Configuration loading and schema.
"""

from .defaults import DEFAULT_CONFIG
from .loader import ConfigError, ConfigLoader, load_config
from .schema import (
    Config,
    InfluxDBConfig,
    LoggingConfig,
    MQTTConfig,
    PrometheusConfig,
    PushgatewayConfig,
    RetainMode,
)

__all__ = [
    "DEFAULT_CONFIG",
    "Config",
    "ConfigError",
    "ConfigLoader",
    "load_config",
    "PrometheusConfig",
    "PushgatewayConfig",
    "InfluxDBConfig",
    "MQTTConfig",
    "LoggingConfig",
    "RetainMode",
]
