"""
MQTT topic layout for one team namespace.
"""
from dataclasses import dataclass

from cardbridge.core.config import Settings


@dataclass(frozen=True)
class Topics:
    """Device topics under `<prefix>/<team_id>`."""

    namespace: str

    @classmethod
    def for_team(cls, team_id: str, prefix: str = "rfid") -> "Topics":
        return cls(namespace=f"{prefix.strip('/')}/{team_id.strip('/')}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "Topics":
        return cls.for_team(settings.team_id, settings.topic_prefix)

    @property
    def status(self) -> str:
        return f"{self.namespace}/card/status"

    @property
    def balance(self) -> str:
        return f"{self.namespace}/card/balance"

    @property
    def topup(self) -> str:
        return f"{self.namespace}/card/topup"

    @property
    def subscriptions(self) -> tuple[str, ...]:
        # The ack topic is subscribed as well; our own publishes echo back on it.
        return (self.status, self.balance, self.topup)
