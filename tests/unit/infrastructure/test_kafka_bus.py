import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from dashboard_measurements.infrastructure.kafka.bus import KafkaMessageBus, _deserialize


class FakeConsumer:
    def __init__(self, records, **kwargs):
        self.kwargs = kwargs
        self.records = records
        self.pattern = None
        self.start = AsyncMock()
        self.stop = AsyncMock()

    def subscribe(self, pattern=None):
        self.pattern = pattern

    async def _iterate(self):
        for record in self.records:
            yield record

    def __aiter__(self):
        return self._iterate()


def _record(topic, payload):
    return SimpleNamespace(topic=topic, value=payload)


@pytest.fixture
def consumers():
    return []


@pytest.fixture
def factory(consumers):
    def _factory(records):
        def _build(**kwargs):
            consumer = FakeConsumer(records, **kwargs)
            consumers.append(consumer)
            return consumer

        return _build

    return _factory


@pytest.mark.asyncio
async def test_yields_messages_with_slash_topics(factory, consumers):
    records = [
        _record("device.p1.d1.online", {"deviceId": "d1", "productId": "p1"}),
        _record("device.p1.d2.offline", None),
        _record("device.p2.d3.message", {"deviceId": "d3", "messageType": "EVENT"}),
    ]
    bus = KafkaMessageBus(bootstrap_servers="k:9092", consumer_factory=factory(records))

    messages = [m async for m in bus.subscribe("device/**")]

    assert [m.topic for m in messages] == ["device/p1/d1/online", "device/p2/d3/message"]
    assert messages[1].message_type == "EVENT"
    consumer = consumers[0]
    assert consumer.kwargs["bootstrap_servers"] == "k:9092"
    assert consumer.kwargs["group_id"] is None
    assert consumer.pattern.startswith("^")
    consumer.start.assert_awaited_once()
    consumer.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_consumer_created_lazily(factory, consumers):
    bus = KafkaMessageBus(consumer_factory=factory([]))

    subscription = bus.subscribe("device/**")

    assert consumers == []
    await subscription.aclose()


@pytest.mark.asyncio
async def test_stop_called_when_subscriber_closes_early(factory, consumers):
    records = [_record(f"device.p1.d{i}.online", {}) for i in range(5)]
    bus = KafkaMessageBus(consumer_factory=factory(records))
    subscription = bus.subscribe("device/**")

    await subscription.__anext__()
    await subscription.aclose()

    consumers[0].stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_is_retried(factory, consumers, monkeypatch, caplog):
    monkeypatch.setattr("dashboard_measurements.utils.retry.asyncio.sleep", AsyncMock())
    caplog.set_level("WARNING")
    bus = KafkaMessageBus(consumer_factory=factory([]), start_retries=3)
    subscription = bus.subscribe("device/**")

    def _flaky(**kwargs):
        consumer = FakeConsumer([], **kwargs)
        consumer.start = AsyncMock(side_effect=[ConnectionError("no broker"), None])
        consumers.append(consumer)
        return consumer

    bus._consumer_factory = _flaky

    assert [m async for m in subscription] == []
    assert consumers[0].start.await_count == 2
    assert any("kafka_consumer_start_failed" in r.message for r in caplog.records)


@pytest.mark.asyncio
async def test_start_failure_propagates_and_stops_consumer(consumers, monkeypatch):
    monkeypatch.setattr("dashboard_measurements.utils.retry.asyncio.sleep", AsyncMock())

    def _broken(**kwargs):
        consumer = FakeConsumer([], **kwargs)
        consumer.start = AsyncMock(side_effect=ConnectionError("no broker"))
        consumers.append(consumer)
        return consumer

    bus = KafkaMessageBus(consumer_factory=_broken, start_retries=2)

    with pytest.raises(ConnectionError):
        await bus.subscribe("device/**").__anext__()

    assert consumers[0].start.await_count == 2
    consumers[0].stop.assert_awaited_once()


def test_deserialize_tolerates_bad_payloads():
    assert _deserialize(json.dumps({"a": 1}).encode()) == {"a": 1}
    assert _deserialize(b"\xff\xfe") is None
    assert _deserialize(b"{not json") is None
    assert _deserialize(None) is None
