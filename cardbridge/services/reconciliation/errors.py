"""
Failure types raised by the reconciliation engine.
"""
from typing import Any

from cardbridge.schemas.cards import TopupResult


class MalformedMessage(Exception):
    """Broker payload could not be decoded into a JSON object."""

    def __init__(self, topic: str, raw: Any, reason: str):
        super().__init__(f"{topic}: {reason}")
        self.topic = topic
        self.raw = raw
        self.reason = reason


class TopupValidationError(Exception):
    """Top-up request rejected before any side effect."""


class PublishFailure(Exception):
    """
    Ack publish failed after the result was recorded and broadcast.
    The ledger write and broadcast are not rolled back.
    """

    def __init__(self, result: TopupResult, detail: str | None = None):
        super().__init__(detail or "publish failed")
        self.result = result
        self.detail = detail
