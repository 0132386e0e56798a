from collections import defaultdict
from typing import Dict, Iterable, List

from smartspend.core.models import Transaction, TransactionType


def summarize(transactions: Iterable[Transaction]) -> Dict[str, float]:
    """Total income, total expenses and the resulting balance."""

    income = 0.0
    expense = 0.0
    for tx in transactions:
        if tx.type is TransactionType.INCOME:
            income += tx.amount
        else:
            expense += tx.amount
    return {"income": income, "expense": expense, "balance": income - expense}


def category_breakdown(transactions: Iterable[Transaction]) -> List[Dict[str, object]]:
    """Aggregate expense totals by category, largest first."""

    totals: Dict[str, float] = defaultdict(float)
    for tx in transactions:
        if tx.type is TransactionType.EXPENSE:
            totals[tx.category] += tx.amount
    rows = [{"name": name, "value": value} for name, value in totals.items()]
    return sorted(rows, key=lambda row: row["value"], reverse=True)


def monthly_totals(transactions: Iterable[Transaction]) -> List[Dict[str, object]]:
    """Income and expense per short month name.

    Months appear in reverse order of first occurrence. Years are not part of
    the key, so November 2023 and November 2024 share a row.
    """

    data: Dict[str, Dict[str, float]] = {}
    for tx in transactions:
        key = tx.date.strftime("%b")
        entry = data.setdefault(key, {"income": 0.0, "expense": 0.0})
        if tx.type is TransactionType.INCOME:
            entry["income"] += tx.amount
        else:
            entry["expense"] += tx.amount
    return [{"name": name, **values} for name, values in reversed(list(data.items()))]


def anomalies(transactions: Iterable[Transaction]) -> List[Transaction]:
    return [tx for tx in transactions if tx.is_anomaly]
