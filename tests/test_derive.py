"""
Tests for metric derivation.
"""

import pytest

from power_exporter.collectors.battery import BatteryReading
from power_exporter.collectors.derive import (
    ChargingState,
    capacity_health,
    charging_state,
    derive_metrics,
)


@pytest.mark.parametrize("capacity", [0, 1, 50, 99, 100])
def test_percentage_is_raw_capacity(capacity: int) -> None:
    metrics = derive_metrics(BatteryReading(name="BAT0", capacity=capacity))

    assert metrics.percentage == float(capacity)
    assert isinstance(metrics.percentage, float)


@pytest.mark.parametrize("energy_full", [0, 1, 50_000_000])
@pytest.mark.parametrize("design", [0, -1])
def test_health_without_design_capacity_is_100(energy_full: int, design: int) -> None:
    assert capacity_health(energy_full, design) == 100.0


def test_health_ratio() -> None:
    assert capacity_health(50_000_000, 60_000_000) == pytest.approx(83.3333333)


def test_health_is_not_clamped() -> None:
    assert capacity_health(66_000_000, 60_000_000) == pytest.approx(110.0)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("Charging", ChargingState.CHARGING),
        ("Full", ChargingState.FULL),
        ("Not charging", ChargingState.NOT_CHARGING),
        ("Discharging", ChargingState.DISCHARGING),
        ("Unknown", ChargingState.DISCHARGING),
        ("", ChargingState.DISCHARGING),
        ("garbage", ChargingState.DISCHARGING),
        ("charging", ChargingState.DISCHARGING),
    ],
)
def test_charging_state(status: str, expected: ChargingState) -> None:
    assert charging_state(status) is expected


def test_charging_codes() -> None:
    assert [int(state) for state in ChargingState] == [0, 1, 2, 3]


def test_unit_conversions() -> None:
    reading = BatteryReading(
        name="BAT0",
        status="Full",
        voltage_now=12_300_000,
        energy_now=45_000_000,
        energy_full=50_000_000,
        energy_full_design=60_000_000,
        capacity=100,
        cycle_count=321,
    )

    metrics = derive_metrics(reading)

    assert metrics.voltage == 12.3
    assert metrics.energy_wh == 45.0
    assert metrics.cycle_count == 321
    assert metrics.charging == 2
    assert metrics.status == "Full"
    assert metrics.capacity_health == pytest.approx(83.3333333)
