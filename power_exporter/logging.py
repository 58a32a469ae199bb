"""
Logging configuration for Power Exporter.

Console output goes to stdout, colored when attached to a terminal; an
optional rotating log file receives plain text. All application loggers live
under the ``power_exporter`` namespace (see get_logger()).
"""

import logging
import logging.handlers
import sys
from dataclasses import dataclass
from pathlib import Path

ROOT_LOGGER = "power_exporter"

# Client libraries that log every request or reconnect at INFO/DEBUG
NOISY_LIBRARIES = ("aiomqtt", "paho", "influxdb_client", "urllib3")


class Colors:
    """ANSI color codes."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BRIGHT_RED = "\033[91m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.DIM + Colors.CYAN,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.BOLD + Colors.BRIGHT_RED,
}

# Second component of the logger name -> color
COMPONENT_COLORS = {
    "sinks": Colors.BLUE,
    "collectors": Colors.CYAN,
    "publisher": Colors.MAGENTA,
    "store": Colors.MAGENTA,
    "config": Colors.YELLOW,
    "app": Colors.GREEN,
}

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def _component(name: str) -> str:
    """power_exporter.sinks.mqtt -> sinks"""
    parts = name.split(".")
    return parts[1] if len(parts) > 1 and parts[0] == ROOT_LOGGER else ""


class PlainFormatter(logging.Formatter):
    """Formatter with a fixed-width level column, for files."""

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        record.levelname = f"{levelname:8}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class ColoredFormatter(PlainFormatter):
    """
    Formatter that adds ANSI colors to console output.

    The level is colored by severity and the logger name by component.
    Warnings and errors also color the message itself. The record is
    restored afterwards, so other handlers see it unchanged.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        use_colors: bool = True,
    ):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        saved = (record.levelname, record.name, record.msg)

        level_color = LEVEL_COLORS.get(record.levelno, "")
        record.levelname = f"{level_color}{record.levelname:8}{Colors.RESET}"
        name_color = COMPONENT_COLORS.get(_component(record.name))
        if name_color:
            record.name = f"{name_color}{record.name}{Colors.RESET}"
        if record.levelno >= logging.WARNING:
            msg_color = Colors.RED if record.levelno >= logging.ERROR else Colors.YELLOW
            record.msg = f"{msg_color}{record.msg}{Colors.RESET}"

        try:
            # Skip PlainFormatter's padding; the level is already padded
            return logging.Formatter.format(self, record)
        finally:
            record.levelname, record.name, record.msg = saved


@dataclass
class LogConfig:
    """Effective logging settings, from the config file and CLI flags."""

    console_level: str = "info"
    console_colors: bool = True

    file_enabled: bool = False
    file_path: str = "/var/log/power-exporter/power-exporter.log"
    file_level: str = "debug"
    file_max_bytes: int = 10 * 1024 * 1024
    file_backup_count: int = 5

    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    # Raised to WARNING unless console_level is debug
    quiet_libraries: tuple[str, ...] = NOISY_LIBRARIES

    def use_file(self, path: str, level: str, max_size_mb: int, backup_count: int) -> None:
        """Enable the rotating log file."""
        self.file_enabled = True
        self.file_path = path
        self.file_level = level
        self.file_max_bytes = max_size_mb * 1024 * 1024
        self.file_backup_count = backup_count


def get_log_level(level_str: str) -> int:
    """Convert a level name (any case) to a logging constant; unknown is INFO."""
    return LEVELS.get(level_str.lower(), logging.INFO)


def setup_logging(config: LogConfig | None = None) -> None:
    """
    Configure the power_exporter logger hierarchy.

    Safe to call more than once: the CLI configures logging before the
    config file is read, and again once it is.

    Args:
        config: Logging configuration (uses defaults if None)
    """
    if config is None:
        config = LogConfig()

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(logging.DEBUG)  # Filtering happens per handler
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(get_log_level(config.console_level))
    use_colors = config.console_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
    console_handler.setFormatter(
        ColoredFormatter(fmt=config.format, datefmt=config.date_format, use_colors=use_colors)
    )
    root_logger.addHandler(console_handler)

    if config.file_enabled:
        Path(config.file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            config.file_path,
            maxBytes=config.file_max_bytes,
            backupCount=config.file_backup_count,
        )
        file_handler.setLevel(get_log_level(config.file_level))
        file_handler.setFormatter(PlainFormatter(fmt=config.format, datefmt=config.date_format))
        root_logger.addHandler(file_handler)

    library_level = logging.DEBUG if config.console_level.lower() == "debug" else logging.WARNING
    for name in config.quiet_libraries:
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a component.

    Args:
        name: Component name, e.g. "sinks.mqtt" (prefixed with power_exporter)

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
