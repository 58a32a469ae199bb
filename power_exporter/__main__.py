"""
Entry point for Power Exporter.

Usage:
    python -m power_exporter -c /path/to/config.yml
    python -m power_exporter --gen-config power-exporter.yml
    python -m power_exporter --install
    python -m power_exporter --help
"""

import argparse
import asyncio
import sys
from pathlib import Path

from . import __version__
from .app import StartupError, run_app
from .config.loader import ConfigError, ConfigLoader
from .const import DEFAULT_CONFIG_PATH
from .install import DEFAULT_INSTALL_CONFIG, InstallError, install_systemd, write_default_config
from .logging import LogConfig, get_logger, setup_logging

logger = get_logger("main")


def validate_config(config_path: str) -> int:
    """Validate configuration file and print warnings."""
    try:
        loader = ConfigLoader()
        config = loader.load_file(config_path)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    warnings = loader.validate(config)

    if warnings:
        print(f"Configuration warnings ({len(warnings)}):")
        for warning in warnings:
            print(f"  - {warning}")

    def state(enabled: bool) -> str:
        return "enabled" if enabled else "disabled"

    print("\nConfiguration summary:")
    print(f"  Interval: {config.interval}s")
    print(f"  Host: {config.host}")
    print(f"  Batteries: {config.power_supply_path}/{config.battery_prefix}*")
    prom = config.prometheus
    print(f"  Prometheus: {state(prom.enabled)} ({prom.address or '*'}:{prom.port}{prom.path})")
    print(f"  Pushgateway: {state(config.pushgateway.enabled)} ({config.pushgateway.url})")
    print(f"  InfluxDB: {state(config.influxdb.enabled)} ({config.influxdb.url})")
    print(f"  MQTT: {state(config.mqtt.enabled)} ({config.mqtt.host}:{config.mqtt.port})")
    print(f"  Logging level: {config.logging.level}")
    if config.logging.file:
        print(f"  Log file: {config.logging.file}")

    print("\nConfiguration is valid!")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="power-exporter",
        description="Battery telemetry exporter for Prometheus, Pushgateway, InfluxDB and MQTT",
    )

    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--gen-config",
        metavar="PATH",
        help="Generate default config file at PATH and exit",
    )
    parser.add_argument(
        "--install",
        action="store_true",
        help="Install as systemd service",
    )
    parser.add_argument(
        "--config-path",
        default=str(DEFAULT_INSTALL_CONFIG),
        help=f"Config path for installation (default: {DEFAULT_INSTALL_CONFIG})",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging (INFO)")
    parser.add_argument("-d", "--debug", action="store_true", help="Debug logging (DEBUG)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Quiet mode (only errors)")
    parser.add_argument("--log-file", metavar="PATH", help="Write logs to file")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def cli_log_config(args: argparse.Namespace) -> LogConfig | None:
    """Logging config from CLI flags, or None when no logging flag was given."""
    if not (args.debug or args.verbose or args.quiet or args.log_file or args.no_color):
        return None

    log_config = LogConfig()

    if args.debug:
        log_config.console_level = "debug"
    elif args.verbose:
        log_config.console_level = "info"
    elif args.quiet:
        log_config.console_level = "error"

    if args.no_color:
        log_config.console_colors = False

    if args.log_file:
        log_config.file_enabled = True
        log_config.file_path = args.log_file

    return log_config


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.gen_config:
        try:
            write_default_config(args.gen_config)
        except InstallError as e:
            print(e, file=sys.stderr)
            return 1
        print(f"Config written to {args.gen_config}")
        return 0

    log_config = cli_log_config(args)
    # Initial logging until the config file is loaded
    setup_logging(log_config)

    if args.install:
        try:
            install_systemd(args.config_path)
        except InstallError as e:
            logger.error(f"Installation failed: {e}")
            return 1
        return 0

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Configuration file not found: {config_path}", file=sys.stderr)
        return 1

    if args.validate:
        return validate_config(str(config_path))

    try:
        asyncio.run(run_app(str(config_path), cli_log_config=log_config))
        return 0
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except StartupError as e:
        logger.error(f"Startup failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
