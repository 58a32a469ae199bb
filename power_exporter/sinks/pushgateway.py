"""
Prometheus Pushgateway sink.

Pushes the complete metric store on every tick, grouped by host. The push
replaces the whole group, so the gateway always holds the latest snapshot.
"""

import asyncio
from collections.abc import Callable

from prometheus_client import push_to_gateway
from prometheus_client.exposition import basic_auth_handler, default_handler

from ..config.schema import PushgatewayConfig
from ..logging import get_logger
from ..store import MetricStore
from .base import BatterySample, Sink

logger = get_logger("sinks.pushgateway")


class PushgatewaySink(Sink):
    """Push sink sending the metric store to a Prometheus Pushgateway."""

    name = "pushgateway"

    def __init__(self, store: MetricStore, config: PushgatewayConfig, host: str):
        """
        Initialize the Pushgateway sink.

        Args:
            store: Metric store to push
            config: Pushgateway configuration
            host: Value of the "host" grouping label
        """
        self.store = store
        self.config = config
        self.host = host

    @property
    def grouping_key(self) -> dict[str, str]:
        return {"host": self.host}

    def _handler(self) -> Callable:
        """Return the request handler, with basic auth when credentials are set."""
        if self.config.username is None:
            return default_handler

        username = self.config.username
        password = self.config.password or ""

        def handler(url, method, timeout, headers, data):
            return basic_auth_handler(url, method, timeout, headers, data, username, password)

        return handler

    def push_blocking(self) -> None:
        """Push the store synchronously (blocking HTTP request)."""
        push_to_gateway(
            self.config.url,
            job=self.config.job,
            registry=self.store.registry,
            grouping_key=self.grouping_key,
            timeout=self.config.timeout,
            handler=self._handler(),
        )

    async def publish(self, samples: list[BatterySample]) -> None:
        """Push the full store, regardless of which batteries were read."""
        await asyncio.to_thread(self.push_blocking)
        logger.debug(f"Pushed {len(self.store.devices)} batteries to {self.config.url}")
