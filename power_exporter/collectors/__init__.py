"""
Battery collectors: enumeration, sampling and metric derivation.
"""

from .battery import BatteryReading, discover_batteries, parse_uevent, read_battery
from .derive import BatteryMetrics, ChargingState, charging_state, derive_metrics

__all__ = [
    "BatteryReading",
    "discover_batteries",
    "parse_uevent",
    "read_battery",
    "BatteryMetrics",
    "ChargingState",
    "charging_state",
    "derive_metrics",
]
