from __future__ import annotations

import json
import logging
from typing import Callable, Iterable, List, Sequence

from smartspend.core.models import Transaction
from smartspend.database import get_value, set_value
from smartspend.seed import SEED_TRANSACTIONS

logger = logging.getLogger(__name__)

STORAGE_KEY = "smartspend_transactions"


class TransactionStore:
    """In-memory transaction list persisted as one JSON blob.

    The blob is read once when the store is created and rewritten after every
    change. Updates replace the whole list: read the latest list, build a new
    one, install it.
    """

    def __init__(
        self,
        db_path: str,
        key: str = STORAGE_KEY,
        seed: Sequence[Transaction] | None = SEED_TRANSACTIONS,
    ) -> None:
        self.db_path = db_path
        self.key = key
        saved = get_value(db_path, key)
        if saved is None:
            self._transactions: List[Transaction] = list(seed or [])
        else:
            self._transactions = [Transaction.from_dict(item) for item in json.loads(saved)]
        logger.debug("Loaded %d transaction(s) from %s", len(self._transactions), db_path)

    @property
    def transactions(self) -> List[Transaction]:
        return list(self._transactions)

    def replace(self, transactions: Iterable[Transaction]) -> None:
        self._transactions = list(transactions)
        payload = json.dumps([tx.to_dict() for tx in self._transactions])
        set_value(self.db_path, self.key, payload)

    def update(self, fn: Callable[[List[Transaction]], Iterable[Transaction]]) -> None:
        self.replace(fn(self.transactions))

    def append(self, transactions: Iterable[Transaction]) -> None:
        new = list(transactions)
        self.update(lambda current: current + new)

    def get(self, tx_id: str) -> Transaction | None:
        return next((tx for tx in self._transactions if tx.id == tx_id), None)

    def __len__(self) -> int:
        return len(self._transactions)
