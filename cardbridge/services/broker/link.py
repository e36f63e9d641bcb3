"""
MQTT broker link built on aiomqtt.
Keeps one connection alive, resubscribes after every reconnect and exposes
publish() with an explicit result instead of a completion callback.
"""
import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import aiomqtt

from cardbridge.core.config import Settings
from cardbridge.core.topics import Topics
from cardbridge.utils.metrics import (
    broker_connected,
    broker_reconnects_total,
    publish_duration_seconds,
)


logger = logging.getLogger(__name__)

MessageHandler = Callable[[str, Any], Awaitable[None]]


@dataclass(frozen=True)
class PublishResult:
    ok: bool
    error: str | None = None


class BrokerLink:
    """
    Connection to a single broker endpoint.

    Delivery is at-most-once: nothing is buffered while disconnected.
    """

    def __init__(
        self,
        topics: Topics,
        *,
        host: str = "localhost",
        port: int = 1883,
        username: str | None = None,
        password: str | None = None,
        client_id: str | None = None,
        keepalive: int = 60,
        qos: int = 0,
        publish_timeout: float = 5.0,
        reconnect_interval: float = 3.0,
        client_factory: Callable[..., Any] = aiomqtt.Client,
    ) -> None:
        self.topics = topics
        self.host = host
        self.port = port
        self._username = username
        self._password = password
        self._client_id = client_id or None
        self._keepalive = keepalive
        self._qos = qos
        self._publish_timeout = publish_timeout
        self._reconnect_interval = reconnect_interval
        self._client_factory = client_factory
        self._client: Any = None
        self._handler: MessageHandler | None = None
        self._task: asyncio.Task | None = None
        self._ready = asyncio.Event()

    @classmethod
    def from_settings(cls, settings: Settings, topics: Topics) -> "BrokerLink":
        return cls(
            topics,
            host=settings.mqtt_host,
            port=settings.mqtt_port,
            username=settings.mqtt_username,
            password=settings.mqtt_password,
            client_id=settings.mqtt_client_id,
            keepalive=settings.mqtt_keepalive,
            qos=settings.mqtt_publish_qos,
            publish_timeout=settings.publish_timeout_seconds,
            reconnect_interval=settings.mqtt_reconnect_interval,
        )

    def set_handler(self, handler: MessageHandler) -> None:
        self._handler = handler

    @property
    def connected(self) -> bool:
        """True once connected and subscribed to every device topic."""
        return self._client is not None and self._ready.is_set()

    async def wait_ready(self, timeout: float | None = None) -> bool:
        try:
            await asyncio.wait_for(self._ready.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="broker-link")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("broker_stopped", extra={"host": self.host, "port": self.port})

    async def _run(self) -> None:
        while True:
            try:
                await self._session()
            except aiomqtt.MqttError as e:
                broker_reconnects_total.inc()
                logger.warning(
                    "broker_disconnected",
                    extra={"host": self.host, "port": self.port, "error": str(e)},
                )
            except Exception as e:
                broker_reconnects_total.inc()
                logger.exception(
                    "broker_session_failed",
                    extra={"host": self.host, "port": self.port, "error": str(e)},
                )
            await asyncio.sleep(self._reconnect_interval)

    async def _session(self) -> None:
        client = self._client_factory(
            self.host,
            port=self.port,
            username=self._username,
            password=self._password,
            identifier=self._client_id,
            keepalive=self._keepalive,
        )
        async with client:
            try:
                for topic in self.topics.subscriptions:
                    await client.subscribe(topic)
                self._client = client
                self._ready.set()
                broker_connected.set(1)
                logger.info(
                    "broker_connected",
                    extra={"host": self.host, "port": self.port, "topic": ",".join(self.topics.subscriptions)},
                )
                async for message in client.messages:
                    await self.dispatch(message.topic.value, message.payload)
            finally:
                self._client = None
                self._ready.clear()
                broker_connected.set(0)

    async def dispatch(self, topic: str, payload: Any) -> None:
        """Hand one inbound message to the handler; handler errors never stop the link."""
        if self._handler is None:
            return
        try:
            await self._handler(topic, payload)
        except Exception as e:
            logger.exception("broker_handler_failed", extra={"topic": topic, "error": str(e)})

    async def publish(self, topic: str, payload: dict[str, Any]) -> PublishResult:
        client = self._client
        if client is None or not self._ready.is_set():
            logger.warning("publish_not_connected", extra={"topic": topic})
            return PublishResult(ok=False, error="broker not connected")

        start = time.time()
        try:
            await asyncio.wait_for(
                client.publish(topic, payload=json.dumps(payload), qos=self._qos),
                timeout=self._publish_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("publish_timeout", extra={"topic": topic})
            return PublishResult(ok=False, error=f"publish timed out after {self._publish_timeout}s")
        except aiomqtt.MqttError as e:
            logger.warning("publish_failed", extra={"topic": topic, "error": str(e)})
            return PublishResult(ok=False, error=str(e))
        finally:
            publish_duration_seconds.observe(time.time() - start)
        return PublishResult(ok=True)
