"""
InfluxDB v2 sink.

Writes one point per battery read during the tick, tagged with the host and
battery name, as a single synchronous batch.
"""

import asyncio
from datetime import datetime, timezone

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS, WriteApi

from ..config.schema import InfluxDBConfig
from ..logging import get_logger
from .base import BatterySample, Sink

logger = get_logger("sinks.influxdb")


class InfluxDBSink(Sink):
    """Push sink writing battery points to InfluxDB."""

    name = "influxdb"

    def __init__(self, config: InfluxDBConfig, host: str):
        """
        Initialize the InfluxDB sink.

        Args:
            config: InfluxDB connection configuration
            host: Value of the "host" tag
        """
        self.config = config
        self.host = host

        self._client: InfluxDBClient | None = None
        self._write_api: WriteApi | None = None

    async def start(self) -> None:
        """Create the client and its synchronous write API."""
        self._client = InfluxDBClient(
            url=self.config.url,
            token=self.config.token,
            org=self.config.org,
            timeout=self.config.timeout,
        )
        self._write_api = self._client.write_api(write_options=SYNCHRONOUS)
        logger.info(f"InfluxDB writes to {self.config.url} bucket={self.config.bucket}")

    def to_point(self, sample: BatterySample, timestamp: datetime) -> Point:
        """Build the point for one battery sample."""
        metrics = sample.metrics
        return (
            Point(self.config.measurement)
            .tag("host", self.host)
            .tag("battery", sample.device)
            .field("percentage", metrics.percentage)
            .field("capacity_health", metrics.capacity_health)
            .field("charging", float(metrics.charging))
            .field("voltage", metrics.voltage)
            .field("energy_wh", metrics.energy_wh)
            .field("cycle_count", metrics.cycle_count)
            .field("status", metrics.status)
            .time(timestamp, WritePrecision.NS)
        )

    async def publish(self, samples: list[BatterySample]) -> None:
        """Write this tick's points in one batch."""
        if self._write_api is None:
            raise RuntimeError("InfluxDB sink is not started")
        if not samples:
            return

        timestamp = datetime.now(timezone.utc)
        points = [self.to_point(sample, timestamp) for sample in samples]

        await asyncio.to_thread(
            self._write_api.write,
            bucket=self.config.bucket,
            org=self.config.org,
            record=points,
        )
        logger.debug(f"Wrote {len(points)} points to InfluxDB")

    async def stop(self) -> None:
        """Close the write API and the client."""
        if self._write_api is not None:
            self._write_api.close()
            self._write_api = None
        if self._client is not None:
            self._client.close()
            self._client = None
