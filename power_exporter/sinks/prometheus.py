"""
Prometheus scrape endpoint.

Serves the metric store's registry over HTTP from a background thread. Each
request is handled on its own thread and reads the gauges directly, so
scrapes never wait for the publish loop.
"""

import asyncio
import threading
from collections.abc import Callable, Iterable
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import make_wsgi_app
from prometheus_client.exposition import ThreadingWSGIServer

from ..config.schema import PrometheusConfig
from ..logging import get_logger
from ..store import MetricStore
from .base import BatterySample, Sink, SinkError

logger = get_logger("sinks.prometheus")


class _QuietHandler(WSGIRequestHandler):
    """Request handler that logs requests at debug level instead of stderr."""

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug(f"{self.address_string()} {format % args}")


class PrometheusSink(Sink):
    """Pull sink exposing the metric store for Prometheus scrapes."""

    name = "prometheus"
    push = False

    def __init__(self, store: MetricStore, config: PrometheusConfig):
        """
        Initialize the scrape endpoint.

        Args:
            store: Metric store to expose
            config: Listener configuration
        """
        self.store = store
        self.config = config

        self._server: WSGIServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        """Port the listener is bound to (resolves port 0 after start)."""
        if self._server is not None:
            return self._server.server_port
        return self.config.port

    def make_app(self) -> Callable[[dict[str, Any], Callable], Iterable[bytes]]:
        """Build a WSGI app serving metrics on the configured path only."""
        metrics_app = make_wsgi_app(self.store.registry)
        path = self.config.path

        def app(environ: dict[str, Any], start_response: Callable) -> Iterable[bytes]:
            if environ.get("PATH_INFO", "") != path:
                start_response("404 Not Found", [("Content-Type", "text/plain")])
                return [b"Not Found\n"]
            return metrics_app(environ, start_response)

        return app

    async def start(self) -> None:
        """
        Bind the listener and start serving.

        Raises:
            SinkError: If the listener cannot bind
        """
        try:
            self._server = make_server(
                self.config.address,
                self.config.port,
                self.make_app(),
                ThreadingWSGIServer,
                handler_class=_QuietHandler,
            )
        except OSError as e:
            raise SinkError(
                f"Cannot listen on {self.config.address or '*'}:{self.config.port}: {e}"
            ) from e

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="prometheus-http",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            f"Prometheus metrics at {self.config.address or '*'}:{self.port}{self.config.path}"
        )

    async def publish(self, samples: list[BatterySample]) -> None:
        """Nothing to do; the store is read on each scrape."""

    async def stop(self) -> None:
        """Stop serving and close the listener."""
        if self._server is None:
            return

        # shutdown() blocks until serve_forever() returns
        await asyncio.to_thread(self._server.shutdown)
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5.0)

        self._server = None
        self._thread = None
        logger.info("Prometheus endpoint stopped")
