"""Demo transactions used when no saved data exists yet."""
from datetime import date

from smartspend.core.models import Transaction, TransactionType


def _tx(id, day, description, amount, type, category, is_anomaly=None):
    return Transaction(
        id=id,
        date=date(2023, 11, day),
        description=description,
        amount=amount,
        type=type,
        category=category,
        is_anomaly=is_anomaly,
    )


INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE

SEED_TRANSACTIONS = [
    _tx("1", 1, "Salary Deposit", 4500.00, INCOME, "Income"),
    _tx("2", 3, "Whole Foods Market", 124.50, EXPENSE, "Food & Dining"),
    _tx("3", 5, "Uber Trip", 24.00, EXPENSE, "Transportation"),
    _tx("4", 5, "Netflix Subscription", 15.99, EXPENSE, "Entertainment"),
    _tx("5", 7, "Electric Bill", 145.20, EXPENSE, "Utilities"),
    _tx("6", 10, "Luxury Bag Store", 2500.00, EXPENSE, "Shopping", is_anomaly=True),
    _tx("7", 12, "Coffee Shop", 6.50, EXPENSE, "Food & Dining"),
    _tx("8", 15, "Rent Payment", 1800.00, EXPENSE, "Housing"),
    _tx("9", 16, "Unknown Charge 9928", 49.99, EXPENSE, "Uncategorized"),
]
