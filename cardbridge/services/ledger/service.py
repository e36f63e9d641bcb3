import logging
import threading

from cardbridge.schemas.cards import Number

logger = logging.getLogger(__name__)


class BalanceLedger:
    """
    Last confirmed balance per card, for the lifetime of the process.

    Advisory only: written after each confirmed top-up, never read to
    authorize or seed one. Writes are unconditional overwrites.
    """

    def __init__(self) -> None:
        self._balances: dict[str, Number] = {}
        self._lock = threading.Lock()

    def record(self, uid: str, balance: Number) -> None:
        with self._lock:
            previous = self._balances.get(uid)
            self._balances[uid] = balance
        logger.debug(
            "ledger_recorded",
            extra={"uid": uid, "new_balance": balance, "current_balance": previous},
        )

    def get(self, uid: str) -> Number | None:
        with self._lock:
            return self._balances.get(uid)

    def snapshot(self) -> dict[str, Number]:
        with self._lock:
            return dict(self._balances)

    def __len__(self) -> int:
        with self._lock:
            return len(self._balances)

    def __contains__(self, uid: object) -> bool:
        with self._lock:
            return uid in self._balances
