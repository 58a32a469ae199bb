"""
Publish loop driving sampling and sink transmission.

Each tick reads every battery, writes the derived values into the metric
store and hands the tick's samples to the push sinks. The first tick runs
immediately; later ticks follow the configured interval until the shutdown
event is set.
"""

import asyncio
import contextlib
import time
from collections.abc import Sequence
from pathlib import Path

from .collectors.battery import read_battery
from .collectors.derive import derive_metrics
from .const import DEFAULT_INTERVAL, POWER_SUPPLY_PATH
from .logging import get_logger
from .sinks.base import BatterySample, Sink
from .store import MetricStore

logger = get_logger("publisher")


class PublishLoop:
    """
    Periodic sampler feeding the metric store and push sinks.

    A battery that cannot be read is skipped for that tick and keeps its
    previous values in the store. Sink failures are logged and never stop
    the loop.
    """

    def __init__(
        self,
        devices: Sequence[str],
        store: MetricStore,
        sinks: Sequence[Sink] = (),
        interval: float = DEFAULT_INTERVAL,
        root: str | Path = POWER_SUPPLY_PATH,
    ):
        """
        Initialize the publish loop.

        Args:
            devices: Battery names from enumeration
            store: Metric store (the loop is its only writer)
            sinks: Started sinks; only push sinks are published to
            interval: Seconds between ticks (non-positive uses the default)
            root: Power supply class directory
        """
        self.devices = tuple(devices)
        self.store = store
        self.sinks = [sink for sink in sinks if sink.push]
        self.interval = interval if interval and interval > 0 else DEFAULT_INTERVAL
        self.root = Path(root)
        self.ticks = 0

    def sample(self) -> list[BatterySample]:
        """Read every battery and update the store."""
        samples: list[BatterySample] = []

        for device in self.devices:
            try:
                reading = read_battery(device, self.root)
            except OSError as e:
                logger.error(f"Error reading {device}: {e}")
                continue

            metrics = derive_metrics(reading)
            self.store.update(device, metrics)
            samples.append(BatterySample(device=device, reading=reading, metrics=metrics))

        return samples

    async def _publish(self, samples: list[BatterySample]) -> None:
        for sink in self.sinks:
            try:
                await sink.publish(samples)
            except Exception as e:
                logger.error(f"{sink.name} publish error: {e}")

    async def tick(self) -> list[BatterySample]:
        """
        Run one sampling cycle and trigger the push sinks.

        Returns:
            Samples of the batteries read successfully
        """
        started = time.monotonic()
        samples = self.sample()
        await self._publish(samples)
        self.ticks += 1

        logger.debug(
            f"Tick {self.ticks}: {len(samples)}/{len(self.devices)} batteries, "
            f"{len(self.sinks)} sinks, {time.monotonic() - started:.3f}s"
        )
        return samples

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """
        Tick until the shutdown event is set.

        Args:
            shutdown_event: Checked between ticks and while idle
        """
        logger.info(
            f"Publish loop started ({len(self.devices)} batteries, interval: {self.interval}s)"
        )

        while not shutdown_event.is_set():
            await self.tick()

            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(shutdown_event.wait(), timeout=self.interval)

        logger.info("Publish loop stopped")
