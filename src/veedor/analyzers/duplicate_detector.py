"""
Duplicate Detection — content hashes for transactions.

Two transactions are duplicates when they share the same day, the same
description (case and surrounding whitespace ignored) and the same amount.
The hash is what both the CSV parser (within one batch) and the repository
(against the stored transactions) compare.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from veedor.models.financial import Transaction

logger = logging.getLogger("veedor.analyzers.duplicate_detector")

_STRIPPED = str.maketrans("", "", "+/=")


def _amount_text(transaction: Transaction) -> str:
    """Shortest plain rendering of the amount: ``-45.5``, ``2500``."""
    text = format(transaction.amount.value.normalize(), "f")
    return "0" if text in ("-0", "0") else text


def content_hash(transaction: Transaction) -> str:
    """Stable text hash of ``dd/mm/yyyy|description|amount``."""
    description = transaction.description.strip().lower()
    key = f"{transaction.date.format()}|{description}|{_amount_text(transaction)}"
    encoded = base64.b64encode(key.encode("utf-8")).decode("ascii")
    return encoded.translate(_STRIPPED)


@dataclass
class DuplicateReport:
    """Result of splitting a batch into unique and duplicate transactions."""

    unique: list[Transaction] = field(default_factory=list)
    duplicates: list[Transaction] = field(default_factory=list)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicates)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.duplicates)


class DuplicateDetector:
    """Remembers content hashes and reports repeats.

    Seed it with the hashes of already-stored transactions to dedup against
    the store; start empty to dedup a single batch.
    """

    def __init__(self, known_hashes: Iterable[str] = ()) -> None:
        self._seen: set[str] = set(known_hashes)

    def seen(self, transaction: Transaction) -> bool:
        return content_hash(transaction) in self._seen

    def register(self, transaction: Transaction) -> str:
        digest = content_hash(transaction)
        self._seen.add(digest)
        return digest

    def check_and_register(self, transaction: Transaction) -> bool:
        """Register the transaction; return ``True`` if it had been seen already."""
        digest = content_hash(transaction)
        if digest in self._seen:
            logger.debug("Duplicate transaction: %s %s", transaction.date, transaction.description)
            return True
        self._seen.add(digest)
        return False

    def forget(self, transaction: Transaction) -> None:
        self._seen.discard(content_hash(transaction))

    @property
    def hashes(self) -> frozenset[str]:
        return frozenset(self._seen)

    def __len__(self) -> int:
        return len(self._seen)

    def scan(self, transactions: Iterable[Transaction]) -> DuplicateReport:
        """Split *transactions* into first occurrences and repeats, in order."""
        report = DuplicateReport()
        for transaction in transactions:
            if self.check_and_register(transaction):
                report.duplicates.append(transaction)
            else:
                report.unique.append(transaction)
        return report


# Convenience function
def find_duplicates(transactions: Iterable[Transaction]) -> DuplicateReport:
    """Quick in-batch duplicate scan."""
    return DuplicateDetector().scan(transactions)
