"""
Battery sampling from /sys/class/power_supply/.

Supports multiple batteries (BAT0, BAT1, etc.). Each battery exposes a
``uevent`` file with one ``POWER_SUPPLY_<KEY>=<value>`` line per attribute:

    POWER_SUPPLY_NAME=BAT0
    POWER_SUPPLY_STATUS=Discharging
    POWER_SUPPLY_PRESENT=1
    POWER_SUPPLY_TECHNOLOGY=Li-ion
    POWER_SUPPLY_CYCLE_COUNT=112
    POWER_SUPPLY_VOLTAGE_NOW=12300000
    POWER_SUPPLY_ENERGY_FULL_DESIGN=57000000
    POWER_SUPPLY_ENERGY_FULL=50150000
    POWER_SUPPLY_ENERGY_NOW=45000000
    POWER_SUPPLY_CAPACITY=89
    POWER_SUPPLY_MODEL_NAME=5B10W13975
    POWER_SUPPLY_MANUFACTURER=SMP
    POWER_SUPPLY_SERIAL_NUMBER=1234
"""

from dataclasses import dataclass
from pathlib import Path

from ..const import BATTERY_PREFIX, POWER_SUPPLY_PATH, UEVENT_FILE
from ..logging import get_logger

logger = get_logger("collectors.battery")


@dataclass(frozen=True)
class BatteryReading:
    """Raw battery attributes captured at one sampling instant."""

    name: str
    status: str = ""
    present: bool = False
    technology: str = ""
    cycle_count: int = 0
    voltage_now: int = 0  # µV
    energy_now: int = 0  # µWh
    energy_full: int = 0  # µWh
    energy_full_design: int = 0  # µWh
    capacity: int = 0  # %
    model: str = ""
    manufacturer: str = ""
    serial: str = ""


# uevent key -> (field name, is integer)
UEVENT_FIELDS: dict[str, tuple[str, bool]] = {
    "POWER_SUPPLY_STATUS": ("status", False),
    "POWER_SUPPLY_TECHNOLOGY": ("technology", False),
    "POWER_SUPPLY_CYCLE_COUNT": ("cycle_count", True),
    "POWER_SUPPLY_VOLTAGE_NOW": ("voltage_now", True),
    "POWER_SUPPLY_ENERGY_FULL_DESIGN": ("energy_full_design", True),
    "POWER_SUPPLY_ENERGY_FULL": ("energy_full", True),
    "POWER_SUPPLY_ENERGY_NOW": ("energy_now", True),
    "POWER_SUPPLY_CAPACITY": ("capacity", True),
    "POWER_SUPPLY_MODEL_NAME": ("model", False),
    "POWER_SUPPLY_MANUFACTURER": ("manufacturer", False),
    "POWER_SUPPLY_SERIAL_NUMBER": ("serial", False),
}


def parse_int(value: str) -> int:
    """Parse an integer attribute; anything unparsable counts as zero."""
    try:
        return int(value.strip())
    except ValueError:
        return 0


def discover_batteries(
    root: str | Path = POWER_SUPPLY_PATH,
    prefix: str = BATTERY_PREFIX,
) -> list[str]:
    """
    Discover battery devices from the power-supply directory.

    Args:
        root: Power supply class directory
        prefix: Name prefix identifying batteries

    Returns:
        Sorted battery names that expose a uevent file (empty if none or
        the directory is unreadable)
    """
    root = Path(root)

    try:
        return [
            entry.name
            for entry in sorted(root.iterdir())
            if entry.name.startswith(prefix) and (entry / UEVENT_FILE).is_file()
        ]
    except OSError as e:
        logger.error(f"Error reading {root}: {e}")
        return []


def parse_uevent(name: str, text: str) -> BatteryReading:
    """
    Parse the contents of a uevent file.

    Lines without ``=`` and unknown keys are ignored. Integer fields that
    fail to parse are zero; the rest of the reading is kept.

    Args:
        name: Battery name
        text: uevent file contents

    Returns:
        BatteryReading for the battery
    """
    values: dict[str, object] = {}

    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue

        key = key.strip()
        if key == "POWER_SUPPLY_PRESENT":
            values["present"] = value.strip() == "1"
            continue

        spec = UEVENT_FIELDS.get(key)
        if spec is None:
            continue

        field_name, is_int = spec
        values[field_name] = parse_int(value) if is_int else value.strip()

    return BatteryReading(name=name, **values)


def read_battery(name: str, root: str | Path = POWER_SUPPLY_PATH) -> BatteryReading:
    """
    Read one battery's uevent file.

    Args:
        name: Battery name (e.g. BAT0)
        root: Power supply class directory

    Returns:
        BatteryReading for the battery

    Raises:
        OSError: If the uevent file cannot be read
    """
    path = Path(root) / name / UEVENT_FILE
    return parse_uevent(name, path.read_text(errors="replace"))
