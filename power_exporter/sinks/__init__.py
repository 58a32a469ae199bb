"""
Metric sinks: Prometheus scrape endpoint, Pushgateway, InfluxDB and MQTT.
"""

from .base import BatterySample, Sink, SinkError
from .influxdb import InfluxDBSink
from .mqtt import MQTTSink
from .prometheus import PrometheusSink
from .pushgateway import PushgatewaySink

__all__ = [
    "BatterySample",
    "Sink",
    "SinkError",
    "PrometheusSink",
    "PushgatewaySink",
    "InfluxDBSink",
    "MQTTSink",
]
