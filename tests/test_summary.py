from datetime import date

import pytest

from smartspend.core.models import Transaction, TransactionType
from smartspend.seed import SEED_TRANSACTIONS
from smartspend.summary import anomalies, category_breakdown, monthly_totals, summarize
from smartspend.utils import RequestGeneration, filter_transactions, format_amount


def test_summarize_seed_data():
    totals = summarize(SEED_TRANSACTIONS)
    assert totals["income"] == pytest.approx(4500.0)
    assert totals["expense"] == pytest.approx(4666.18)
    assert totals["balance"] == pytest.approx(-166.18)


def test_category_breakdown_only_counts_expenses_largest_first():
    rows = category_breakdown(SEED_TRANSACTIONS)
    names = [row["name"] for row in rows]

    assert names[0] == "Shopping"
    assert names[1] == "Housing"
    assert "Income" not in names
    food = next(row for row in rows if row["name"] == "Food & Dining")
    assert food["value"] == pytest.approx(131.0)


def test_monthly_totals_are_reversed_first_seen_order():
    txs = [
        Transaction("a", date(2024, 1, 3), "Pay", 100.0, TransactionType.INCOME),
        Transaction("b", date(2024, 2, 3), "Food", 30.0, TransactionType.EXPENSE),
        Transaction("c", date(2024, 1, 9), "Cab", 20.0, TransactionType.EXPENSE),
    ]
    assert monthly_totals(txs) == [
        {"name": "Feb", "income": 0.0, "expense": 30.0},
        {"name": "Jan", "income": 100.0, "expense": 20.0},
    ]


def test_anomalies_and_search():
    assert [tx.description for tx in anomalies(SEED_TRANSACTIONS)] == ["Luxury Bag Store"]

    found = filter_transactions(SEED_TRANSACTIONS, "food")
    assert [tx.id for tx in found] == ["2", "7"]
    assert filter_transactions(SEED_TRANSACTIONS, "") == SEED_TRANSACTIONS
    assert [tx.id for tx in filter_transactions(SEED_TRANSACTIONS, "UTIL")] == ["5"]


def test_format_amount():
    assert format_amount(4500.0) == "4500"
    assert format_amount(124.5) == "124.5"
    assert format_amount(15.99) == "15.99"


def test_request_generation():
    generation = RequestGeneration()
    first = generation.begin()
    assert generation.is_current(first)

    second = generation.begin()
    assert not generation.is_current(first)
    assert generation.is_current(second)

    generation.cancel()
    assert not generation.is_current(second)
