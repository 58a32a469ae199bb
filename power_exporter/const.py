"""
Application constants and metadata.
"""

# Application info
APP_NAME = "Power Exporter"
APP_VERSION = "0.1.0"
APP_URL = "https://github.com/coolerUA/power-exporter"

# Sysfs layout
POWER_SUPPLY_PATH = "/sys/class/power_supply"
BATTERY_PREFIX = "BAT"
UEVENT_FILE = "uevent"

# Default values
DEFAULT_INTERVAL = 10
DEFAULT_CONFIG_PATH = ".power-exporter.yml"
DEFAULT_PROMETHEUS_PORT = 9273
DEFAULT_PROMETHEUS_PATH = "/metrics"
DEFAULT_PUSHGATEWAY_JOB = "power_exporter"
DEFAULT_MQTT_PORT = 1883
DEFAULT_MQTT_KEEPALIVE = 60
DEFAULT_INFLUXDB_MEASUREMENT = "battery"

# Metric label carrying the device identifier
DEVICE_LABEL = "battery"
