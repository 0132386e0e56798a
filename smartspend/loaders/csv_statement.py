# smartspend/loaders/csv_statement.py

import logging
import re
import time
from datetime import date

import pandas as pd

from smartspend.loaders.base import BaseLoader
from smartspend.core.models import Transaction, TransactionType, UNCATEGORIZED

logger = logging.getLogger(__name__)

# Leading numeric prefix, the way a lenient float parse reads "12.50\r" or "7abc"
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _parse_amount(raw):
    match = _LEADING_NUMBER.match(raw)
    if not match:
        return None
    return float(match.group(1))


def _parse_date(raw, today):
    if not raw:
        return today
    parsed = pd.to_datetime(raw, errors='coerce')
    if pd.isna(parsed):
        logger.warning("Could not parse date %r, using %s", raw, today.isoformat())
        return today
    return parsed.date()


class CSVStatementLoader(BaseLoader):
    """
    Loader for plain ``Date,Description,Amount`` statements.

    The first line is a header and is skipped. Each remaining line is split on
    commas with no quoting support, so descriptions must not contain commas.
    Lines with fewer than three fields, or whose amount is not numeric, are
    dropped. Negative amounts are expenses; everything else is income. Amounts
    are stored as absolute values and every row starts uncategorized.
    """

    def parse(self, text):
        today = date.today()
        stamp = str(int(time.time() * 1000))
        lines = text.split('\n')

        txs = []
        dropped = 0
        for idx, line in enumerate(lines[1:]):
            parts = line.split(',')
            if len(parts) < 3:
                dropped += 1
                continue

            amount = _parse_amount(parts[2])
            if amount is None:
                dropped += 1
                continue

            txs.append(
                Transaction(
                    id=stamp + str(idx),
                    date=_parse_date(parts[0].strip(), today),
                    description=parts[1].strip() or 'Unknown',
                    amount=abs(amount),
                    type=TransactionType.EXPENSE if amount < 0 else TransactionType.INCOME,
                    category=UNCATEGORIZED,
                )
            )

        if dropped:
            logger.debug("Dropped %d unparseable line(s)", dropped)
        return txs
