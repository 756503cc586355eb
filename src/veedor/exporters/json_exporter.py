"""
JSON exporter — a self-describing dump of categories and transactions.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Iterable

from veedor import __version__
from veedor.models.financial import Category, Transaction

EXPORT_FORMAT_VERSION = "1.0"


def export_json(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    exported_at: datetime | None = None,
) -> str:
    """Serialize to an indented JSON document with a ``metadata`` header."""
    categories = list(categories)
    transactions = list(transactions)
    names = {str(c.id): c.name for c in categories}
    exported_at = exported_at or datetime.now(timezone.utc)

    records: list[dict[str, Any]] = []
    for transaction in transactions:
        record = transaction.to_json()
        record["category"] = names.get(transaction.category_id) if transaction.category_id else None
        records.append(record)

    document = {
        "metadata": {
            "exported_at": exported_at.isoformat(),
            "total_transactions": len(transactions),
            "format_version": EXPORT_FORMAT_VERSION,
            "generator": f"veedor {__version__}",
        },
        "categories": [c.to_json() for c in categories],
        "transactions": records,
    }
    return json.dumps(document, indent=2, ensure_ascii=False)
