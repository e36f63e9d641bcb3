"""
Card payloads exchanged with devices, browser clients and top-up callers.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

Number = int | float


class CardEvent(BaseModel):
    """Card detected by a reader (device-status topic)."""

    uid: str
    balance: Number | None = None
    status: str = "detected"
    timestamp: int | None = None  # epoch millis

    model_config = ConfigDict(frozen=True)


class BalanceUpdate(BaseModel):
    """Balance reported by a reader (device-balance topic)."""

    uid: str
    new_balance: Number

    model_config = ConfigDict(frozen=True)


class TopupRequest(BaseModel):
    """Caller-supplied top-up. current_balance is trusted as authoritative."""

    uid: str
    amount: Number
    current_balance: Number = Field(alias="currentBalance")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class TopupResult(BaseModel):
    """Confirmed top-up, broadcast to clients and published to the device."""

    uid: str
    amount: Number
    new_balance: Number = Field(alias="newBalance")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class TopupResponse(BaseModel):
    success: bool = True
    uid: str
    amount: Number
    new_balance: Number = Field(alias="newBalance")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: str | None = None
