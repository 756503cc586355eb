"""
CSV exporter — transactions in the semicolon format the importer reads.

With ``include_merchant`` a fifth ``comercio`` column is appended; that file
is for spreadsheets and will not re-import (the importer expects 4 columns).
"""

from __future__ import annotations

from typing import Iterable

from veedor.analyzers.selectors import UNCATEGORIZED_NAME
from veedor.connectors.csv_connector import EXPECTED_HEADERS, SEPARATOR
from veedor.models.financial import Category, Transaction


def _cell(text: str | None) -> str:
    # no quoting in the format, so the separator cannot appear in a cell
    return (text or "").replace(SEPARATOR, ",").replace("\n", " ").strip()


def export_transactions_csv(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    include_merchant: bool = False,
) -> str:
    """Render transactions as CSV text, oldest first."""
    names = {str(c.id): c.name for c in categories}
    headers = list(EXPECTED_HEADERS)
    if include_merchant:
        headers.append("comercio")

    lines = [SEPARATOR.join(headers)]
    for transaction in sorted(transactions, key=lambda t: t.date.value):
        category = ""
        if transaction.category_id:
            category = names.get(transaction.category_id, UNCATEGORIZED_NAME)
        row = [
            transaction.date.format(),
            _cell(transaction.description),
            _cell(category),
            transaction.amount.format(with_symbol=False),
        ]
        if include_merchant:
            row.append(_cell(transaction.merchant))
        lines.append(SEPARATOR.join(row))

    return "\n".join(lines) + "\n"
