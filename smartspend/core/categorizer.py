# smartspend/core/categorizer.py
import logging
from dataclasses import replace
from typing import Iterable, List

from smartspend.core.models import CATEGORIES, UNCATEGORIZED, Transaction

logger = logging.getLogger(__name__)

CATEGORY_POLICIES = ("accept", "reject", "coerce")


def needs_category(tx):
    return not tx.category or tx.category == UNCATEGORIZED


def uncategorized(transactions):
    return [tx for tx in transactions if needs_category(tx)]


def set_category(transactions, tx_id, category):
    """Return a new list where the transaction ``tx_id`` carries ``category``."""
    return [replace(tx, category=category) if tx.id == tx_id else tx for tx in transactions]


def apply_categories(
    transactions: Iterable[Transaction],
    results: Iterable[dict],
    policy: str = "accept",
    allowed: Iterable[str] = CATEGORIES,
) -> List[Transaction]:
    """Merge categorize results into ``transactions`` by id.

    Transactions without a matching result are returned unchanged. ``policy``
    decides what happens to a category outside ``allowed``: ``accept`` keeps
    it, ``reject`` ignores the whole record and ``coerce`` stores
    ``Uncategorized`` while still applying the anomaly flag.
    """
    if policy not in CATEGORY_POLICIES:
        raise ValueError(f"Unknown category policy '{policy}'")

    allowed = set(allowed)
    by_id = {}
    for record in results:
        if not isinstance(record, dict) or "id" not in record:
            continue
        by_id.setdefault(str(record["id"]), record)

    merged = []
    for tx in transactions:
        match = by_id.get(tx.id)
        if match is None:
            merged.append(tx)
            continue

        category = match.get("category") or UNCATEGORIZED
        if category not in allowed:
            if policy == "reject":
                logger.warning("Ignoring unknown category %r for transaction %s", category, tx.id)
                merged.append(tx)
                continue
            if policy == "coerce":
                category = UNCATEGORIZED

        merged.append(replace(tx, category=category, is_anomaly=bool(match.get("isAnomaly", False))))
    return merged
