"""
Pytest configuration and fixtures.
"""

import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from power_exporter.logging import ROOT_LOGGER


def make_uevent(**values: object) -> str:
    """Build uevent contents from POWER_SUPPLY_* keyword suffixes."""
    return "".join(f"POWER_SUPPLY_{key.upper()}={value}\n" for key, value in values.items())


BAT0_UEVENT = make_uevent(
    name="BAT0",
    type="Battery",
    status="Discharging",
    present=1,
    technology="Li-poly",
    cycle_count=112,
    voltage_now=12300000,
    energy_full_design=60000000,
    energy_full=50000000,
    energy_now=45000000,
    capacity=80,
    capacity_level="Normal",
    model_name="5B10W13975",
    manufacturer="SMP",
    serial_number="1234",
)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging() during a test."""
    yield
    root = logging.getLogger(ROOT_LOGGER)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def power_supply(tmp_path: Path) -> Path:
    """Empty fake /sys/class/power_supply directory."""
    root = tmp_path / "power_supply"
    root.mkdir()
    return root


@pytest.fixture
def add_device(power_supply: Path) -> Callable[..., Path]:
    """Factory creating a device directory with a uevent file."""

    def add(name: str, uevent: str | None = None) -> Path:
        device = power_supply / name
        device.mkdir(exist_ok=True)
        if uevent is not None:
            (device / "uevent").write_text(uevent)
        return device

    return add


@pytest.fixture
def uevent() -> Callable[..., str]:
    """Factory building uevent file contents."""
    return make_uevent


@pytest.fixture
def bat0_uevent() -> str:
    """A complete, well-formed uevent for BAT0."""
    return BAT0_UEVENT
