"""
Read-only audit view of the in-memory ledger.
These values are advisory; the top-up path never reads them.
"""
from fastapi import APIRouter, Depends, HTTPException

from cardbridge.api.deps import get_engine
from cardbridge.services.reconciliation.engine import ReconciliationEngine


router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.get("")
def list_balances(engine: ReconciliationEngine = Depends(get_engine)) -> dict:
    balances = engine.ledger.snapshot()
    return {"count": len(balances), "balances": balances}


@router.get("/{uid}")
def get_balance(uid: str, engine: ReconciliationEngine = Depends(get_engine)) -> dict:
    balance = engine.ledger.get(uid)
    if balance is None:
        raise HTTPException(status_code=404, detail="Unknown card")
    return {"uid": uid, "balance": balance}
