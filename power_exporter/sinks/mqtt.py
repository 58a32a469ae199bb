"""
MQTT sink using aiomqtt.

Features:
- One JSON message per battery per tick on {prefix}/battery/{name}
- Last Will and Testament (LWT) on {prefix}/status for availability
- Queued publishing with automatic reconnection
"""

import asyncio
import json
import uuid
from typing import Any

import aiomqtt

from ..config.schema import MQTTConfig
from ..logging import get_logger
from .base import BatterySample, Sink

logger = get_logger("sinks.mqtt")


class MQTTSink(Sink):
    """
    Push sink publishing battery readings to an MQTT broker.

    publish() only enqueues messages; a background task owns the
    connection, reconnecting with exponential back-off.
    """

    name = "mqtt"

    def __init__(self, config: MQTTConfig, host: str):
        """
        Initialize the MQTT sink.

        Args:
            config: MQTT configuration
            host: Host name included in every payload
        """
        self.config = config
        self.host = host
        self.availability_topic = f"{config.topic_prefix}/status"

        self._client: aiomqtt.Client | None = None
        self._connected = False
        self._reconnect_interval = 5.0
        self._max_reconnect_interval = 60.0

        self._client_id = config.client_id or f"power_exporter_{uuid.uuid4().hex[:8]}"

        # Message queue for offline buffering
        self._message_queue: asyncio.Queue[tuple[str, str]] = asyncio.Queue(maxsize=1000)

        self._publisher_task: asyncio.Task | None = None
        self._running = False

    @property
    def connected(self) -> bool:
        return self._connected

    def battery_topic(self, device: str) -> str:
        """Topic for one battery's readings."""
        return f"{self.config.topic_prefix}/battery/{device}"

    def payload(self, sample: BatterySample) -> dict[str, Any]:
        """Build the JSON document for one battery sample."""
        metrics = sample.metrics
        reading = sample.reading
        return {
            "host": self.host,
            "battery": sample.device,
            "percentage": metrics.percentage,
            "capacity_health": round(metrics.capacity_health, 2),
            "charging": int(metrics.charging),
            "status": metrics.status,
            "voltage": metrics.voltage,
            "energy_wh": metrics.energy_wh,
            "cycle_count": metrics.cycle_count,
            "present": reading.present,
            "technology": reading.technology,
            "model": reading.model,
            "manufacturer": reading.manufacturer,
            "serial": reading.serial,
        }

    def _create_client(self) -> aiomqtt.Client:
        """Create a new aiomqtt client instance."""
        will = aiomqtt.Will(
            topic=self.availability_topic,
            payload="offline",
            qos=1,
            retain=self.config.should_retain_status(),
        )

        return aiomqtt.Client(
            hostname=self.config.host,
            port=self.config.port,
            username=self.config.username,
            password=self.config.password,
            identifier=self._client_id,
            keepalive=self.config.keepalive,
            will=will,
        )

    async def connect(self) -> None:
        """
        Connect to the MQTT broker and announce availability.

        Raises:
            aiomqtt.MqttError: If connection fails
        """
        logger.debug(f"Connecting to MQTT broker {self.config.host}:{self.config.port}")

        self._client = self._create_client()
        await self._client.__aenter__()
        self._connected = True

        await self._client.publish(
            self.availability_topic,
            "online",
            qos=1,
            retain=self.config.should_retain_status(),
        )
        logger.info(f"Connected to MQTT broker at {self.config.host}:{self.config.port}")

    async def disconnect(self) -> None:
        """Publish offline status and disconnect."""
        if self._client is None or not self._connected:
            return

        try:
            await self._client.publish(
                self.availability_topic,
                "offline",
                qos=1,
                retain=self.config.should_retain_status(),
            )
        except aiomqtt.MqttError as e:
            logger.warning(f"Failed to publish offline status: {e}")

        try:
            await self._client.__aexit__(None, None, None)
        except aiomqtt.MqttError as e:
            logger.warning(f"Error while disconnecting from MQTT: {e}")

        self._connected = False
        self._client = None
        logger.info("Disconnected from MQTT broker")

    async def publish(self, samples: list[BatterySample]) -> None:
        """Queue one message per battery sample."""
        for sample in samples:
            topic = self.battery_topic(sample.device)
            try:
                self._message_queue.put_nowait((topic, json.dumps(self.payload(sample))))
            except asyncio.QueueFull:
                logger.warning(f"Message queue full, dropping message for {topic}")

    async def _publisher_loop(self) -> None:
        """Background task to publish queued messages."""
        reconnect_interval = self._reconnect_interval

        while self._running:
            try:
                if not self._connected:
                    try:
                        await self.connect()
                        reconnect_interval = self._reconnect_interval
                    except aiomqtt.MqttError as e:
                        logger.error(f"Failed to connect to MQTT: {e}")
                        await asyncio.sleep(reconnect_interval)
                        reconnect_interval = min(
                            reconnect_interval * 2, self._max_reconnect_interval
                        )
                        continue

                try:
                    topic, payload = await asyncio.wait_for(
                        self._message_queue.get(), timeout=1.0
                    )
                except asyncio.TimeoutError:
                    continue

                try:
                    await self._client.publish(
                        topic,
                        payload,
                        qos=self.config.qos,
                        retain=self.config.should_retain_data(),
                    )
                except aiomqtt.MqttError as e:
                    logger.error(f"MQTT error: {e}")
                    self._connected = False
                    # Re-queue the message
                    try:
                        self._message_queue.put_nowait((topic, payload))
                    except asyncio.QueueFull:
                        logger.warning(f"Message queue full, dropping message for {topic}")

            except Exception as e:
                # The message is dropped; the loop keeps running
                logger.error(f"Publisher loop error: {e}")
                self._connected = False
                await asyncio.sleep(1.0)

    async def start(self) -> None:
        """Start the background publisher."""
        self._running = True
        self._publisher_task = asyncio.create_task(self._publisher_loop())
        logger.info(f"MQTT publisher started for {self.config.host}:{self.config.port}")

    async def stop(self) -> None:
        """Stop the publisher and disconnect."""
        self._running = False

        if self._publisher_task:
            self._publisher_task.cancel()
            try:
                await self._publisher_task
            except asyncio.CancelledError:
                pass
            self._publisher_task = None

        await self.disconnect()
