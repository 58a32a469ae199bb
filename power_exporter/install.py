"""
Default config generation and systemd service installation.
"""

import subprocess
import sys
from pathlib import Path

from .config.defaults import DEFAULT_CONFIG
from .const import APP_NAME, APP_URL
from .logging import get_logger

logger = get_logger("install")

SERVICE_NAME = "power-exporter"
UNIT_PATH = Path(f"/etc/systemd/system/{SERVICE_NAME}.service")
DEFAULT_INSTALL_CONFIG = Path("/usr/local/etc/power-exporter.yml")

SYSTEMD_UNIT_TEMPLATE = """\
[Unit]
Description={app_name} - Exports battery metrics to Prometheus
Documentation={app_url}
After=network-online.target
Wants=network-online.target

[Service]
Type=simple
ExecStart={exec_start}
Restart=always
RestartSec=5

[Install]
WantedBy=multi-user.target
"""


class InstallError(Exception):
    """Exception raised when installation fails."""

    pass


def write_default_config(path: str | Path, overwrite: bool = True) -> bool:
    """
    Write the default configuration file.

    Args:
        path: Destination path
        overwrite: Replace an existing file

    Returns:
        True if the file was written, False if it already existed

    Raises:
        InstallError: If the file cannot be written
    """
    path = Path(path)
    if path.exists() and not overwrite:
        return False

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(DEFAULT_CONFIG)
    except OSError as e:
        raise InstallError(f"Failed to write config to {path}: {e}") from e
    return True


def render_unit(config_path: str | Path, python: str | None = None) -> str:
    """Render the systemd unit running this interpreter with the given config."""
    exec_start = f"{python or sys.executable} -m power_exporter -c {Path(config_path)}"
    return SYSTEMD_UNIT_TEMPLATE.format(
        app_name=APP_NAME, app_url=APP_URL, exec_start=exec_start
    )


def install_systemd(
    config_path: str | Path = DEFAULT_INSTALL_CONFIG,
    unit_path: str | Path = UNIT_PATH,
) -> None:
    """
    Install and start the exporter as a systemd service.

    Writes the config (if absent) and the unit file, then reloads systemd
    and enables and starts the service.

    Args:
        config_path: Config file used by the service
        unit_path: Unit file destination

    Raises:
        InstallError: If a file cannot be written or systemctl fails
    """
    config_path = Path(config_path)
    unit_path = Path(unit_path)

    if write_default_config(config_path, overwrite=False):
        print(f"Config created at {config_path}")
    else:
        print(f"Config already exists at {config_path}")

    try:
        unit_path.write_text(render_unit(config_path))
    except OSError as e:
        raise InstallError(f"Failed to write systemd unit to {unit_path}: {e}") from e
    print(f"Systemd unit created at {unit_path}")

    commands = [
        ["systemctl", "daemon-reload"],
        ["systemctl", "enable", SERVICE_NAME],
        ["systemctl", "start", SERVICE_NAME],
    ]
    for args in commands:
        logger.debug(f"Running {' '.join(args)}")
        try:
            subprocess.run(args, check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise InstallError(f"Failed to run {' '.join(args)}: {e}") from e

    print("Service enabled and started")
