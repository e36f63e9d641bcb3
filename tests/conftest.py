"""Shared fakes for bridge tests: a broker that records publishes and a hub that records broadcasts."""
from typing import Any

import pytest

from cardbridge.core.config import Settings
from cardbridge.core.topics import Topics
from cardbridge.services.broker.link import PublishResult


class FakeBroker:
    def __init__(self, ok: bool = True, error: str | None = None, connected: bool = True):
        self.ok = ok
        self.error = error
        self.connected = connected
        self.started = False
        self.stopped = False
        self.handler = None
        self.published: list[tuple[str, dict[str, Any]]] = []

    def set_handler(self, handler) -> None:
        self.handler = handler

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def publish(self, topic: str, payload: dict[str, Any]) -> PublishResult:
        self.published.append((topic, payload))
        return PublishResult(ok=self.ok, error=self.error)


class RecordingHub:
    def __init__(self):
        self.events: list[tuple[str, Any]] = []

    def broadcast(self, event: str, data: Any) -> int:
        self.events.append((event, data))
        return 1


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def topics() -> Topics:
    return Topics.for_team("blink_01")


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(team_id="blink_01", frontend_dir=str(tmp_path / "no-frontend"))


@pytest.fixture
def broker() -> FakeBroker:
    return FakeBroker()


@pytest.fixture
def hub() -> RecordingHub:
    return RecordingHub()


@pytest.fixture
def failing_broker() -> FakeBroker:
    return FakeBroker(ok=False, error="connection refused")


@pytest.fixture
def offline_broker() -> FakeBroker:
    return FakeBroker(connected=False)
