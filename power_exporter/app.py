"""
Main application orchestrator.

Handles:
- Configuration loading
- Battery enumeration
- Sink lifecycle
- Publish loop
- Graceful shutdown
"""

import asyncio
import signal

from .collectors.battery import discover_batteries
from .config.loader import ConfigLoader
from .config.schema import Config
from .const import APP_NAME, APP_VERSION
from .logging import LogConfig, get_logger, setup_logging
from .publisher import PublishLoop
from .sinks.base import Sink, SinkError
from .sinks.influxdb import InfluxDBSink
from .sinks.mqtt import MQTTSink
from .sinks.prometheus import PrometheusSink
from .sinks.pushgateway import PushgatewaySink
from .store import MetricStore

logger = get_logger("app")


class StartupError(Exception):
    """Exception raised when the exporter cannot start."""

    pass


class Application:
    """
    Main application class.

    Enumerates batteries once, builds the metric store and the enabled
    sinks, then runs the publish loop until shutdown.
    """

    def __init__(self, config: Config):
        """
        Initialize application.

        Args:
            config: Application configuration
        """
        self.config = config

        self.devices: list[str] = []
        self.store: MetricStore | None = None
        self.sinks: list[Sink] = []
        self.publisher: PublishLoop | None = None

        self._shutdown_event = asyncio.Event()

    def _discover(self) -> list[str]:
        """Enumerate batteries; finding none is fatal."""
        devices = discover_batteries(self.config.power_supply_path, self.config.battery_prefix)
        if not devices:
            raise StartupError(
                f"No batteries found in {self.config.power_supply_path} "
                f"(prefix {self.config.battery_prefix!r})"
            )
        logger.info(f"Found batteries: {', '.join(devices)}")
        return devices

    def _create_sinks(self, store: MetricStore) -> list[Sink]:
        """Create all enabled sinks."""
        sinks: list[Sink] = []
        config = self.config

        if config.prometheus.enabled:
            sinks.append(PrometheusSink(store, config.prometheus))

        if config.pushgateway.enabled:
            sinks.append(PushgatewaySink(store, config.pushgateway, config.host))

        if config.influxdb.enabled:
            sinks.append(InfluxDBSink(config.influxdb, config.host))

        if config.mqtt.enabled:
            sinks.append(MQTTSink(config.mqtt, config.host))

        return sinks

    async def _start_sinks(self) -> None:
        """Start sinks in order; a failure stops the ones already started."""
        started: list[Sink] = []
        for sink in self.sinks:
            try:
                await sink.start()
            except SinkError as e:
                self.sinks = started
                await self._stop_sinks()
                raise StartupError(f"Failed to start {sink.name} sink: {e}") from e
            started.append(sink)
            logger.debug(f"Started sink: {sink.name}")

    async def _stop_sinks(self) -> None:
        """Stop sinks in reverse start order."""
        for sink in reversed(self.sinks):
            try:
                await sink.stop()
            except Exception as e:
                logger.error(f"Error stopping {sink.name} sink: {e}")

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._signal_handler)

    def _signal_handler(self) -> None:
        """Handle shutdown signals."""
        logger.info("Received shutdown signal")
        self.request_shutdown()

    def request_shutdown(self) -> None:
        """Ask the publish loop to stop after the current tick."""
        self._shutdown_event.set()

    async def start(self) -> None:
        """
        Enumerate batteries, build the store and start the sinks.

        Raises:
            StartupError: If no battery is found or a sink cannot start
        """
        logger.info(f"Starting {APP_NAME} {APP_VERSION}")

        self.devices = self._discover()
        self.store = MetricStore(self.devices)
        self.sinks = self._create_sinks(self.store)
        if not self.sinks:
            logger.warning("No sinks enabled")

        await self._start_sinks()

        self.publisher = PublishLoop(
            self.devices,
            self.store,
            self.sinks,
            interval=self.config.interval,
            root=self.config.power_supply_path,
        )
        logger.info(f"{APP_NAME} started with sinks: {[s.name for s in self.sinks]}")

    async def stop(self) -> None:
        """Stop the application."""
        logger.info(f"Stopping {APP_NAME}")
        await self._stop_sinks()
        logger.info(f"{APP_NAME} stopped")

    async def run(self, install_signal_handlers: bool = True) -> None:
        """
        Run the application until shutdown.

        Args:
            install_signal_handlers: Stop on SIGTERM/SIGINT
        """
        await self.start()

        try:
            if install_signal_handlers:
                self._setup_signal_handlers()
            await self.publisher.run(self._shutdown_event)
        finally:
            await self.stop()


async def run_app(config_path: str, cli_log_config: LogConfig | None = None) -> None:
    """
    Load configuration and run the application.

    Args:
        config_path: Path to configuration file
        cli_log_config: Logging config from CLI args (overrides file config)

    Raises:
        ConfigError: If the configuration cannot be loaded
        StartupError: If the exporter cannot start
    """
    loader = ConfigLoader()
    config = loader.load_file(config_path)

    if cli_log_config is None:
        setup_logging(config.logging.to_log_config())
    else:
        # CLI flags win, but a log file from the config is still used
        if not cli_log_config.file_enabled and config.logging.file:
            cli_log_config.use_file(
                config.logging.file,
                config.logging.file_level,
                config.logging.file_max_size,
                config.logging.file_keep,
            )
        setup_logging(cli_log_config)

    logger.info(f"Loaded configuration from {config_path}")
    logger.debug(f"Interval: {config.interval}s, host: {config.host}")

    for warning in loader.validate(config):
        logger.warning(f"Config warning: {warning}")

    app = Application(config)
    await app.run()
