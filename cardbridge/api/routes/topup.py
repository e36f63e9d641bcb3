"""
Top-up API.
The caller supplies the card's current balance; the server only adds to it.
"""
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from cardbridge.api.deps import get_engine
from cardbridge.schemas.cards import ErrorResponse, TopupResponse
from cardbridge.services.reconciliation.engine import PUBLISH_FAILED, ReconciliationEngine
from cardbridge.services.reconciliation.errors import PublishFailure, TopupValidationError


logger = logging.getLogger(__name__)

router = APIRouter(tags=["topup"])


def _error(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


@router.post(
    "/topup",
    response_model=TopupResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def submit_topup(request: Request, engine: ReconciliationEngine = Depends(get_engine)):
    """Body: {uid, amount, currentBalance}. Returns the confirmed new balance."""
    try:
        payload = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")

    try:
        result = await engine.submit_topup(payload)
    except TopupValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except PublishFailure as e:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, PUBLISH_FAILED, e.detail)

    response = TopupResponse(uid=result.uid, amount=result.amount, new_balance=result.new_balance)
    return response.model_dump(by_alias=True)
