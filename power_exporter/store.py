"""
Metric store shared by the publish loop and all sinks.

Holds one labelled gauge per exported metric in a private Prometheus
registry. Every gauge child for every known battery is created up front, so
scrapes and pushes never miss a series for a known device; a failed read only
leaves the previous values in place.

Each gauge value carries its own lock inside prometheus_client, so a write
to one (metric, battery) pair is atomic and never blocks readers of others.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from .collectors.derive import BatteryMetrics
from .const import DEVICE_LABEL
from .logging import get_logger

logger = get_logger("store")


@dataclass(frozen=True)
class MetricSpec:
    """Definition of one exported gauge."""

    name: str
    help: str
    attr: str  # BatteryMetrics attribute holding the value


METRICS: tuple[MetricSpec, ...] = (
    MetricSpec("battery_percentage", "Battery charge percentage", "percentage"),
    MetricSpec(
        "battery_capacity_percent",
        "Battery health/capacity compared to design",
        "capacity_health",
    ),
    MetricSpec(
        "battery_charging",
        "0 if discharging or unknown, 1 if charging, 2 if full, 3 if not charging",
        "charging",
    ),
    MetricSpec("battery_voltage_volts", "Current battery voltage in volts", "voltage"),
    MetricSpec("battery_energy_wh", "Current energy in Wh", "energy_wh"),
    MetricSpec("battery_cycle_count", "Battery cycle count", "cycle_count"),
)

METRIC_NAMES: tuple[str, ...] = tuple(spec.name for spec in METRICS)


class MetricStore:
    """
    Current value of every (metric, battery) pair.

    The publish loop is the only writer; sinks read single values, a
    snapshot, or the registry itself.
    """

    def __init__(self, devices: Iterable[str], label: str = DEVICE_LABEL):
        """
        Initialize the store and create all series.

        Args:
            devices: Battery names returned by enumeration
            label: Label name carrying the battery name
        """
        self.label = label
        self._devices = tuple(devices)
        self._registry = CollectorRegistry(auto_describe=True)
        self._gauges: dict[str, Gauge] = {}

        for spec in METRICS:
            gauge = Gauge(spec.name, spec.help, [label], registry=self._registry)
            for device in self._devices:
                gauge.labels(device)
            self._gauges[spec.name] = gauge

        logger.debug(f"Created {len(self._gauges)} gauges for {len(self._devices)} batteries")

    @property
    def devices(self) -> tuple[str, ...]:
        return self._devices

    @property
    def registry(self) -> CollectorRegistry:
        """Registry holding the gauges (for exposition and pushes)."""
        return self._registry

    def _gauge(self, metric: str, device: str) -> Gauge:
        if device not in self._devices:
            raise KeyError(f"Unknown battery: {device}")
        try:
            return self._gauges[metric]
        except KeyError:
            raise KeyError(f"Unknown metric: {metric}") from None

    def set(self, metric: str, device: str, value: float) -> None:
        """
        Set the current value of one series (last write wins).

        Raises:
            KeyError: If the metric or battery is unknown
        """
        self._gauge(metric, device).labels(device).set(value)

    def get(self, metric: str, device: str) -> float:
        """
        Get the current value of one series.

        Raises:
            KeyError: If the metric or battery is unknown
        """
        self._gauge(metric, device)
        value = self._registry.get_sample_value(metric, {self.label: device})
        if value is None:
            raise KeyError(f"No sample for {metric}{{{self.label}={device!r}}}")
        return value

    def update(self, device: str, metrics: BatteryMetrics) -> None:
        """Write all derived values for one battery."""
        for spec in METRICS:
            self.set(spec.name, device, float(getattr(metrics, spec.attr)))

    def snapshot(self) -> dict[tuple[str, str], float]:
        """Return all current values keyed by (metric, battery)."""
        values: dict[tuple[str, str], float] = {}
        for family in self._registry.collect():
            for sample in family.samples:
                device = sample.labels.get(self.label)
                if device is not None:
                    values[(sample.name, device)] = sample.value
        return values

    def exposition(self) -> bytes:
        """Serialize the store in the Prometheus text exposition format."""
        return generate_latest(self._registry)
