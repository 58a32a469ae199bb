"""
Tests for the metric sinks.
"""

import asyncio
import json
import socket
import urllib.error
import urllib.request
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from power_exporter.collectors.battery import BatteryReading
from power_exporter.collectors.derive import derive_metrics
from power_exporter.config.schema import (
    InfluxDBConfig,
    MQTTConfig,
    PrometheusConfig,
    PushgatewayConfig,
)
from power_exporter.sinks import (
    BatterySample,
    InfluxDBSink,
    MQTTSink,
    PrometheusSink,
    PushgatewaySink,
    SinkError,
)
from power_exporter.store import MetricStore


def make_sample(
    device: str = "BAT0", capacity: int = 80, status: str = "Charging"
) -> BatterySample:
    reading = BatteryReading(
        name=device,
        status=status,
        present=True,
        technology="Li-ion",
        cycle_count=112,
        voltage_now=12_300_000,
        energy_now=45_000_000,
        energy_full=50_000_000,
        energy_full_design=60_000_000,
        capacity=capacity,
        model="5B10W13975",
        manufacturer="SMP",
        serial="1234",
    )
    return BatterySample(device=device, reading=reading, metrics=derive_metrics(reading))


def fetch(url: str) -> tuple[int, str]:
    try:
        with urllib.request.urlopen(url, timeout=5) as response:
            return response.status, response.read().decode()
    except urllib.error.HTTPError as e:
        return e.code, e.read().decode()


class TestPrometheusSink:
    @pytest.mark.asyncio
    async def test_serves_store_on_configured_path(self) -> None:
        store = MetricStore(["BAT0", "BAT1"])
        store.update("BAT0", make_sample("BAT0", 80).metrics)
        store.update("BAT1", make_sample("BAT1", 55).metrics)
        sink = PrometheusSink(store, PrometheusConfig(address="127.0.0.1", port=0, path="/metrics"))

        await sink.start()
        try:
            status, body = fetch(f"http://127.0.0.1:{sink.port}/metrics")
        finally:
            await sink.stop()

        assert status == 200
        assert 'battery_percentage{battery="BAT0"} 80.0' in body
        assert 'battery_percentage{battery="BAT1"} 55.0' in body

    @pytest.mark.asyncio
    async def test_other_paths_return_404(self) -> None:
        sink = PrometheusSink(
            MetricStore(["BAT0"]), PrometheusConfig(address="127.0.0.1", port=0, path="/scrape")
        )

        await sink.start()
        try:
            status, _ = fetch(f"http://127.0.0.1:{sink.port}/metrics")
        finally:
            await sink.stop()

        assert status == 404

    @pytest.mark.asyncio
    async def test_bind_failure_raises_sink_error(self) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
            taken.bind(("127.0.0.1", 0))
            taken.listen(1)
            port = taken.getsockname()[1]

            sink = PrometheusSink(
                MetricStore(["BAT0"]), PrometheusConfig(address="127.0.0.1", port=port)
            )
            with pytest.raises(SinkError):
                await sink.start()

    @pytest.mark.asyncio
    async def test_publish_is_noop_and_stop_without_start(self) -> None:
        sink = PrometheusSink(MetricStore(["BAT0"]), PrometheusConfig())

        assert sink.push is False
        await sink.publish([make_sample()])
        await sink.stop()


class TestPushgatewaySink:
    @pytest.mark.asyncio
    async def test_pushes_full_store_grouped_by_host(self) -> None:
        store = MetricStore(["BAT0"])
        config = PushgatewayConfig(enabled=True, url="http://gw:9091", job="power_exporter")
        sink = PushgatewaySink(store, config, host="laptop")

        with patch("power_exporter.sinks.pushgateway.push_to_gateway") as mock_push:
            await sink.publish([])

        mock_push.assert_called_once()
        args, kwargs = mock_push.call_args
        assert args == ("http://gw:9091",)
        assert kwargs["job"] == "power_exporter"
        assert kwargs["registry"] is store.registry
        assert kwargs["grouping_key"] == {"host": "laptop"}
        assert kwargs["timeout"] == 10.0

    @pytest.mark.asyncio
    async def test_push_error_propagates_to_caller(self) -> None:
        sink = PushgatewaySink(MetricStore(["BAT0"]), PushgatewayConfig(url="http://gw"), "h")

        with patch(
            "power_exporter.sinks.pushgateway.push_to_gateway",
            side_effect=OSError("connection refused"),
        ):
            with pytest.raises(OSError):
                await sink.publish([])

    def test_basic_auth_handler_when_credentials_set(self) -> None:
        config = PushgatewayConfig(url="http://gw", username="user", password="secret")
        sink = PushgatewaySink(MetricStore(["BAT0"]), config, "h")

        with patch("power_exporter.sinks.pushgateway.basic_auth_handler") as mock_auth:
            handler = sink._handler()
            handler("http://gw", "PUT", 10, [], b"data")

        mock_auth.assert_called_once_with(
            "http://gw", "PUT", 10, [], b"data", "user", "secret"
        )


class TestInfluxDBSink:
    def make_sink(self) -> InfluxDBSink:
        config = InfluxDBConfig(
            enabled=True, url="http://influx:8086", token="t", org="o", bucket="b"
        )
        return InfluxDBSink(config, host="laptop")

    def test_point_fields_and_tags(self) -> None:
        sink = self.make_sink()
        sample = make_sample(status="Not charging")

        line = sink.to_point(sample, datetime(2026, 1, 1, tzinfo=timezone.utc)).to_line_protocol()

        assert line.startswith("battery,battery=BAT0,host=laptop ")
        assert "percentage=80" in line
        assert "charging=3" in line
        assert "voltage=12.3" in line
        assert "energy_wh=45" in line
        assert "cycle_count=112i" in line
        assert 'status="Not charging"' in line

    @pytest.mark.asyncio
    async def test_writes_one_batch_per_tick(self) -> None:
        sink = self.make_sink()

        with patch("power_exporter.sinks.influxdb.InfluxDBClient") as mock_client_cls:
            write_api = mock_client_cls.return_value.write_api.return_value
            await sink.start()
            await sink.publish([make_sample("BAT0"), make_sample("BAT1", 55)])
            await sink.stop()

        mock_client_cls.assert_called_once_with(
            url="http://influx:8086", token="t", org="o", timeout=10_000
        )
        write_api.write.assert_called_once()
        kwargs = write_api.write.call_args.kwargs
        assert kwargs["bucket"] == "b"
        assert kwargs["org"] == "o"
        assert len(kwargs["record"]) == 2
        write_api.close.assert_called_once()
        mock_client_cls.return_value.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_no_samples_writes_nothing(self) -> None:
        sink = self.make_sink()

        with patch("power_exporter.sinks.influxdb.InfluxDBClient") as mock_client_cls:
            await sink.start()
            await sink.publish([])

        mock_client_cls.return_value.write_api.return_value.write.assert_not_called()

    @pytest.mark.asyncio
    async def test_publish_before_start_raises(self) -> None:
        with pytest.raises(RuntimeError):
            await self.make_sink().publish([make_sample()])


class TestMQTTSink:
    def test_payload(self) -> None:
        sink = MQTTSink(MQTTConfig(topic_prefix="pe"), host="laptop")

        payload = sink.payload(make_sample())

        assert sink.battery_topic("BAT0") == "pe/battery/BAT0"
        assert sink.availability_topic == "pe/status"
        assert payload["host"] == "laptop"
        assert payload["battery"] == "BAT0"
        assert payload["percentage"] == 80.0
        assert payload["charging"] == 1
        assert payload["status"] == "Charging"
        assert payload["voltage"] == 12.3
        assert payload["capacity_health"] == 83.33
        assert payload["manufacturer"] == "SMP"
        json.dumps(payload)

    @pytest.mark.asyncio
    async def test_publish_only_enqueues(self) -> None:
        sink = MQTTSink(MQTTConfig(), host="laptop")

        await sink.publish([make_sample("BAT0"), make_sample("BAT1")])

        assert sink._message_queue.qsize() == 2
        topic, payload = sink._message_queue.get_nowait()
        assert topic == "power_exporter/battery/BAT0"
        assert json.loads(payload)["battery"] == "BAT0"

    @pytest.mark.asyncio
    async def test_full_queue_drops_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        sink = MQTTSink(MQTTConfig(), host="laptop")
        for _ in range(sink._message_queue.maxsize):
            sink._message_queue.put_nowait(("t", "p"))

        await sink.publish([make_sample()])

        assert "Message queue full" in caplog.text

    @pytest.mark.asyncio
    async def test_publisher_sends_queued_messages(self) -> None:
        sink = MQTTSink(MQTTConfig(qos=0), host="laptop")
        client = MagicMock()
        client.publish = AsyncMock()

        with patch.object(sink, "_create_client", return_value=client):
            await sink.start()
            await sink.publish([make_sample()])
            for _ in range(100):
                if client.publish.call_count >= 2:
                    break
                await asyncio.sleep(0.01)
            await sink.stop()

        topics = [c.args[0] for c in client.publish.call_args_list]
        assert topics[0] == "power_exporter/status"
        assert "power_exporter/battery/BAT0" in topics
        assert topics[-1] == "power_exporter/status"
        assert client.publish.call_args_list[-1].args[1] == "offline"

    @pytest.mark.asyncio
    async def test_publisher_survives_non_mqtt_error(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        sink = MQTTSink(MQTTConfig(topic_prefix="power/#"), host="laptop")
        client = MagicMock()

        async def publish(topic, payload, **kwargs):
            if "/battery/" in topic:
                raise ValueError("Publish topic cannot contain wildcards.")

        client.publish = AsyncMock(side_effect=publish)

        def online_count() -> int:
            return sum(1 for c in client.publish.call_args_list if c.args[1] == "online")

        with patch.object(sink, "_create_client", return_value=client):
            await sink.start()
            await sink.publish([make_sample()])

            # The failed publish drops the message and reconnects after a pause
            for _ in range(300):
                if online_count() >= 2:
                    break
                await asyncio.sleep(0.01)

            assert not sink._publisher_task.done()
            await sink.stop()

        assert "Publisher loop error: Publish topic cannot contain wildcards." in caplog.text
        assert online_count() == 2
        assert sink._message_queue.empty()
        assert client.publish.call_args_list[-1].args[:2] == ("power/#/status", "offline")


@pytest.mark.parametrize(
    ("make", "push"),
    [
        (lambda: PrometheusSink(MetricStore(["BAT0"]), PrometheusConfig()), False),
        (lambda: PushgatewaySink(MetricStore(["BAT0"]), PushgatewayConfig(), "h"), True),
        (lambda: InfluxDBSink(InfluxDBConfig(), "h"), True),
        (lambda: MQTTSink(MQTTConfig(), "h"), True),
    ],
    ids=["prometheus", "pushgateway", "influxdb", "mqtt"],
)
def test_push_flag_is_bool(make, push: bool) -> None:
    sink = make()

    assert sink.push is push
