"""
Default configuration file contents.
"""

DEFAULT_CONFIG = """\
# Power Exporter Configuration

# Polling interval in seconds
interval: 10

# Hostname for metrics tagging (empty uses the system hostname)
host: "myhost"

# Where battery devices are enumerated from
power_supply_path: /sys/class/power_supply
battery_prefix: BAT

# Prometheus metrics server (scrape endpoint)
prometheus:
  enabled: true
  address: ""
  port: 9273
  path: "/metrics"

# Prometheus Pushgateway
pushgateway:
  enabled: false
  url: "http://localhost:9091"
  job: "power_exporter"
  # username: "user"
  # password: "secret"
  timeout: 10

# InfluxDB v2 push
influxdb:
  enabled: false
  url: "http://localhost:8086"
  token: "your-token"
  org: "your-org"
  bucket: "your-bucket"
  measurement: "battery"

# MQTT (one JSON message per battery per interval)
mqtt:
  enabled: false
  host: "localhost"
  port: 1883
  # username: "user"
  # password: "secret"
  topic_prefix: "power_exporter"
  qos: 1
  retain: "full"  # off, online, full
  keepalive: 60

logging:
  level: info
  colors: true
  # file: /var/log/power-exporter/power-exporter.log
  file_level: debug
  file_max_size: 10  # MB
  file_keep: 5
"""
