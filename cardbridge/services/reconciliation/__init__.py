"""
Bridge-and-reconciliation engine.
"""
from .engine import (
    EVENT_CARD_BALANCE,
    EVENT_CARD_STATUS,
    EVENT_TOPUP_SUCCESS,
    PUBLISH_FAILED,
    ReconciliationEngine,
    compute_new_balance,
    decode_message,
    validate_topup,
)
from .errors import MalformedMessage, PublishFailure, TopupValidationError

__all__ = [
    "EVENT_CARD_BALANCE",
    "EVENT_CARD_STATUS",
    "EVENT_TOPUP_SUCCESS",
    "PUBLISH_FAILED",
    "ReconciliationEngine",
    "compute_new_balance",
    "decode_message",
    "validate_topup",
    "MalformedMessage",
    "PublishFailure",
    "TopupValidationError",
]
