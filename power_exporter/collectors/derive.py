"""
Derivation of normalized battery metrics from raw readings.

Converts sysfs micro-units to volts and watt-hours, computes capacity health
against the design capacity and maps the status string to a numeric code.
"""

from dataclasses import dataclass
from enum import IntEnum

from .battery import BatteryReading

MICRO = 1_000_000


class ChargingState(IntEnum):
    """Numeric charging state exported as the battery_charging gauge."""

    DISCHARGING = 0  # Also any unrecognised status, including "Unknown"
    CHARGING = 1
    FULL = 2
    NOT_CHARGING = 3


STATUS_CODES: dict[str, ChargingState] = {
    "Charging": ChargingState.CHARGING,
    "Full": ChargingState.FULL,
    "Not charging": ChargingState.NOT_CHARGING,
}


@dataclass(frozen=True)
class BatteryMetrics:
    """Normalized per-battery values for one tick."""

    percentage: float
    capacity_health: float
    charging: ChargingState
    voltage: float  # V
    energy_wh: float  # Wh
    cycle_count: int
    status: str = ""


def charging_state(status: str) -> ChargingState:
    """Map a power-supply status string (exact match) to its charging code."""
    return STATUS_CODES.get(status, ChargingState.DISCHARGING)


def capacity_health(energy_full: int, energy_full_design: int) -> float:
    """
    Full-charge capacity as a percentage of the design capacity.

    Not clamped: a stale design value can push it above 100.
    """
    if energy_full_design <= 0:
        return 100.0
    return 100.0 * energy_full / energy_full_design


def derive_metrics(reading: BatteryReading) -> BatteryMetrics:
    """Convert a raw reading into exported metric values."""
    return BatteryMetrics(
        percentage=float(reading.capacity),
        capacity_health=capacity_health(reading.energy_full, reading.energy_full_design),
        charging=charging_state(reading.status),
        voltage=reading.voltage_now / MICRO,
        energy_wh=reading.energy_now / MICRO,
        cycle_count=reading.cycle_count,
        status=reading.status,
    )
