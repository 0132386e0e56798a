# smartspend/utils.py
import logging

logger = logging.getLogger(__name__)


def filter_transactions(transactions, query):
    """
    Return only those transactions whose description or category contains
    the query, ignoring case. An empty query matches everything.
    """
    needle = (query or '').lower()
    return [
        tx for tx in transactions
        if needle in tx.description.lower() or needle in tx.category.lower()
    ]


def format_amount(amount):
    """Render an amount without trailing zeros: 4500.0 -> '4500', 124.5 -> '124.5'."""
    return f"{amount:.2f}".rstrip('0').rstrip('.')


class RequestGeneration:
    """
    Tags outstanding requests so a response from a superseded request can be
    recognised and dropped. ``begin`` hands out a token, ``cancel`` invalidates
    every token handed out so far.
    """

    def __init__(self):
        self._current = 0

    def begin(self):
        self._current += 1
        return self._current

    def cancel(self):
        self._current += 1

    def is_current(self, token):
        if token != self._current:
            logger.debug("Discarding stale response for request %s (current %s)", token, self._current)
            return False
        return True
