"""Tests for BrokerLink: subscribe-before-ready, dispatch isolation, publish results."""
import asyncio
from types import SimpleNamespace

import aiomqtt
import pytest

from cardbridge.services.broker.link import BrokerLink

pytestmark = pytest.mark.anyio


def _message(topic: str, payload: bytes):
    return SimpleNamespace(topic=SimpleNamespace(value=topic), payload=payload)


class _FakeClient:
    def __init__(self, messages=(), publish_delay: float = 0.0, publish_error: Exception | None = None):
        self.subscribed: list[str] = []
        self.published: list[tuple[str, str, int]] = []
        self._messages = list(messages)
        self._publish_delay = publish_delay
        self._publish_error = publish_error
        self.kwargs = None
        self.ready_seen_on_first_message = None

    def __call__(self, hostname, **kwargs):
        self.kwargs = {"hostname": hostname, **kwargs}
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def subscribe(self, topic):
        self.subscribed.append(topic)

    @property
    def messages(self):
        return self._iterate()

    async def _iterate(self):
        for message in self._messages:
            yield message

    async def publish(self, topic, payload=None, qos=0):
        if self._publish_delay:
            await asyncio.sleep(self._publish_delay)
        if self._publish_error is not None:
            raise self._publish_error
        self.published.append((topic, payload, qos))


def _connected_link(topics, client, **kwargs) -> BrokerLink:
    link = BrokerLink(topics, **kwargs)
    link._client = client
    link._ready.set()
    return link


class TestSession:
    async def test_subscribes_to_all_device_topics_then_dispatches(self, topics):
        received = []
        client = _FakeClient(messages=[_message(topics.status, b'{"uid": "A1"}')])
        link = BrokerLink(topics, host="broker.local", port=1884, client_id="bridge-1", client_factory=client)

        async def handler(topic, payload):
            received.append((topic, payload, link.connected))

        link.set_handler(handler)
        await link._session()

        assert client.subscribed == [topics.status, topics.balance, topics.topup]
        assert client.kwargs["hostname"] == "broker.local"
        assert client.kwargs["port"] == 1884
        assert client.kwargs["identifier"] == "bridge-1"
        assert received == [(topics.status, b'{"uid": "A1"}', True)]
        assert link.connected is False

    async def test_handler_error_does_not_stop_delivery(self, topics):
        received = []
        client = _FakeClient(
            messages=[_message(topics.status, b"first"), _message(topics.status, b"second")],
        )
        link = BrokerLink(topics, client_factory=client)

        async def handler(topic, payload):
            received.append(payload)
            if payload == b"first":
                raise RuntimeError("boom")

        link.set_handler(handler)
        await link._session()

        assert received == [b"first", b"second"]

    async def test_reconnects_after_connection_loss(self, topics):
        attempts = []

        class _Dropping(_FakeClient):
            async def __aenter__(self):
                attempts.append(1)
                if len(attempts) < 3:
                    raise aiomqtt.MqttError("connection lost")
                return self

        client = _Dropping()
        link = BrokerLink(topics, reconnect_interval=0.01, client_factory=client)
        await link.start()
        assert await link.wait_ready(timeout=1.0) is True
        await link.stop()

        assert len(attempts) >= 3
        assert client.subscribed[:3] == [topics.status, topics.balance, topics.topup]


class TestPublish:
    async def test_not_connected(self, topics):
        link = BrokerLink(topics)

        result = await link.publish(topics.topup, {"uid": "A1"})

        assert result.ok is False
        assert result.error == "broker not connected"

    async def test_success_sends_json(self, topics):
        client = _FakeClient()
        link = _connected_link(topics, client, qos=1)

        result = await link.publish(topics.topup, {"uid": "A1", "amount": 5, "newBalance": 15})

        assert result.ok is True
        assert client.published == [(topics.topup, '{"uid": "A1", "amount": 5, "newBalance": 15}', 1)]

    async def test_timeout_is_a_failure(self, topics):
        client = _FakeClient(publish_delay=1.0)
        link = _connected_link(topics, client, publish_timeout=0.01)

        result = await link.publish(topics.topup, {"uid": "A1"})

        assert result.ok is False
        assert "timed out" in result.error

    async def test_transport_error_is_a_failure(self, topics):
        client = _FakeClient(publish_error=aiomqtt.MqttError("not authorized"))
        link = _connected_link(topics, client)

        result = await link.publish(topics.topup, {"uid": "A1"})

        assert result.ok is False
        assert "not authorized" in result.error
