"""
Power Exporter - battery telemetry exporter for Prometheus, Pushgateway,
InfluxDB and MQTT.
"""

from .const import APP_VERSION

__version__ = APP_VERSION

__all__ = ["__version__"]
