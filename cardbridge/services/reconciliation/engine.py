"""
Reconciliation engine: relays device events to clients and executes top-ups.

The authoritative current balance of a top-up always comes from the caller.
Device status/balance messages are observational and never touch the ledger.
"""
import json
import logging
import math
from typing import Any, Awaitable, Mapping, Protocol

from cardbridge.core.topics import Topics
from cardbridge.schemas.cards import Number, TopupRequest, TopupResult
from cardbridge.services.broker.link import PublishResult
from cardbridge.services.ledger.service import BalanceLedger
from cardbridge.services.reconciliation.errors import (
    MalformedMessage,
    PublishFailure,
    TopupValidationError,
)
from cardbridge.utils.metrics import broker_messages_total, topups_total


logger = logging.getLogger(__name__)

EVENT_CARD_STATUS = "card-status"
EVENT_CARD_BALANCE = "card-balance"
EVENT_TOPUP_SUCCESS = "topup-success"

INVALID_UID_OR_AMOUNT = "Invalid UID or amount"
CURRENT_BALANCE_MISSING = "Current balance not provided"
CURRENT_BALANCE_INVALID = "Invalid current balance"
PUBLISH_FAILED = "MQTT publish failed"


class Publisher(Protocol):
    def publish(self, topic: str, payload: dict[str, Any]) -> Awaitable[PublishResult]: ...


class Broadcaster(Protocol):
    def broadcast(self, event: str, data: Any) -> int: ...


def _is_real_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def validate_topup(payload: Any) -> TopupRequest:
    """
    Check a raw top-up body. An absent currentBalance is an error;
    a currentBalance of 0 is valid.
    """
    if not isinstance(payload, Mapping):
        raise TopupValidationError(INVALID_UID_OR_AMOUNT)

    uid = payload.get("uid")
    amount = payload.get("amount")
    if not isinstance(uid, str) or not uid:
        raise TopupValidationError(INVALID_UID_OR_AMOUNT)
    if not _is_real_number(amount) or amount <= 0:
        raise TopupValidationError(INVALID_UID_OR_AMOUNT)

    current_balance = payload.get("currentBalance")
    if current_balance is None:
        raise TopupValidationError(CURRENT_BALANCE_MISSING)
    if not _is_real_number(current_balance):
        raise TopupValidationError(CURRENT_BALANCE_INVALID)

    return TopupRequest(uid=uid, amount=amount, current_balance=current_balance)


def compute_new_balance(request: TopupRequest) -> Number:
    """currentBalance + amount; a sum that is not a finite number is rejected."""
    try:
        new_balance = request.current_balance + request.amount
    except OverflowError:
        raise TopupValidationError(INVALID_UID_OR_AMOUNT)
    if not _is_real_number(new_balance):
        raise TopupValidationError(INVALID_UID_OR_AMOUNT)
    return new_balance


def decode_message(topic: str, raw: Any) -> dict[str, Any]:
    """Decode a broker payload into a JSON object or raise MalformedMessage."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedMessage(topic, raw, "payload is not valid UTF-8")
    elif isinstance(raw, str):
        text = raw
    else:
        raise MalformedMessage(topic, raw, f"unsupported payload type {type(raw).__name__}")

    try:
        data = json.loads(text)
    except ValueError as e:
        raise MalformedMessage(topic, raw, f"invalid JSON: {e}")
    if not isinstance(data, dict):
        raise MalformedMessage(topic, raw, "payload is not a JSON object")
    return data


class ReconciliationEngine:
    """Owns the ledger and drives broadcast and publish for each unit of work."""

    def __init__(
        self,
        topics: Topics,
        publisher: Publisher,
        broadcaster: Broadcaster,
        ledger: BalanceLedger | None = None,
    ) -> None:
        self.topics = topics
        self.publisher = publisher
        self.broadcaster = broadcaster
        self.ledger = ledger if ledger is not None else BalanceLedger()
        self._relays = {
            topics.status: ("status", EVENT_CARD_STATUS),
            topics.balance: ("balance", EVENT_CARD_BALANCE),
        }

    async def handle_message(self, topic: str, raw: Any) -> None:
        """Relay device status/balance messages unmodified; ignore everything else."""
        relay = self._relays.get(topic)
        if relay is None:
            kind = "topup_ack" if topic == self.topics.topup else "unknown"
            broker_messages_total.labels(kind=kind, result="ignored").inc()
            logger.debug("broker_message_ignored", extra={"topic": topic})
            return

        kind, event = relay
        try:
            data = decode_message(topic, raw)
        except MalformedMessage as e:
            broker_messages_total.labels(kind=kind, result="malformed").inc()
            logger.error(
                "broker_message_malformed",
                extra={"topic": topic, "error": e.reason, "detail": repr(raw)[:200]},
            )
            return

        self.broadcaster.broadcast(event, data)
        broker_messages_total.labels(kind=kind, result="relayed").inc()
        logger.info("device_event_relayed", extra={"topic": topic, "event": event, "uid": data.get("uid")})

    async def submit_topup(self, payload: Any) -> TopupResult:
        """
        Validate, compute, record, broadcast, publish.

        Raises TopupValidationError before any side effect, or PublishFailure
        after the ledger write and broadcast have already happened.
        """
        try:
            request = validate_topup(payload)
            new_balance = compute_new_balance(request)
        except TopupValidationError as e:
            topups_total.labels(result="invalid").inc()
            logger.info("topup_rejected", extra={"error": str(e)})
            raise

        result = TopupResult(uid=request.uid, amount=request.amount, new_balance=new_balance)

        self.ledger.record(result.uid, result.new_balance)
        logger.info(
            "topup_computed",
            extra={
                "uid": request.uid,
                "current_balance": request.current_balance,
                "amount": request.amount,
                "new_balance": new_balance,
            },
        )

        payload_out = result.to_payload()
        self.broadcaster.broadcast(EVENT_TOPUP_SUCCESS, payload_out)

        outcome = await self.publisher.publish(self.topics.topup, payload_out)
        if not outcome.ok:
            topups_total.labels(result="publish_failed").inc()
            logger.error(
                "topup_publish_failed",
                extra={"uid": result.uid, "new_balance": new_balance, "error": outcome.error},
            )
            raise PublishFailure(result, outcome.error)

        topups_total.labels(result="success").inc()
        logger.info(
            "topup_published",
            extra={"uid": result.uid, "amount": result.amount, "new_balance": new_balance},
        )
        return result
