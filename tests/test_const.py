"""
Tests for constants.
"""

from power_exporter import __version__
from power_exporter.const import APP_NAME, APP_VERSION, DEFAULT_INTERVAL, POWER_SUPPLY_PATH


def test_constants():
    """Test that constants are defined."""
    assert APP_NAME == "Power Exporter"
    assert APP_VERSION == "0.1.0"
    assert __version__ == APP_VERSION
    assert DEFAULT_INTERVAL == 10
    assert POWER_SUPPLY_PATH == "/sys/class/power_supply"
