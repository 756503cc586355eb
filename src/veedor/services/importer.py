"""
Import service — CSV text to stored transactions.

Coordinates the three import stages:

1. **Parse** the text (:class:`CSVParser`), which validates rows and drops
   repeats within the file.
2. **Resolve** the free-text category cell to a stored category id, by
   name (case-insensitive) or slug. Unknown categories reject the row, and
   the next repeat of that row in the file, if any, is resolved in its place.
3. **Store** through ``import_many(dedupe=True)``, which drops anything
   already in the repository.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from veedor.analyzers.duplicate_detector import content_hash
from veedor.connectors.csv_connector import CSVConnector, CSVParser, CSVParseResult, CSVRowError
from veedor.models.financial import Category, Transaction, slugify

if TYPE_CHECKING:
    from veedor.storage.base import CategoryRepository, TransactionRepository

logger = logging.getLogger("veedor.services.importer")


@dataclass
class ImportReport:
    """What an import did.

    ``duplicates`` adds the repeats found inside the file to the ones that
    were already stored.
    """

    imported: int = 0
    duplicates: int = 0
    errors: list[CSVRowError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def error_count(self) -> int:
        return len(self.errors)


def _category_lookup(categories: list[Category]) -> dict[str, str]:
    lookup: dict[str, str] = {}
    for category in categories:
        lookup[str(category.id)] = str(category.id)
        lookup[category.slug] = str(category.id)
        lookup[category.name.casefold()] = str(category.id)
    return lookup


@dataclass
class ImportService:
    """Parse, resolve and store CSV transactions.

    Usage::

        service = ImportService(workspace.transactions, workspace.categories)
        report = await service.import_text(text)
    """

    transactions: TransactionRepository
    categories: CategoryRepository | None = None

    async def import_text(self, text: str, resolve_categories: bool = True) -> ImportReport:
        return await self._store(CSVParser().parse(text), resolve_categories)

    async def import_file(self, path: str | Path, encoding: str = "utf-8", resolve_categories: bool = True) -> ImportReport:
        result = await CSVConnector(file_path=path, encoding=encoding).pull()
        return await self._store(result, resolve_categories)

    async def _store(self, result: CSVParseResult, resolve_categories: bool) -> ImportReport:
        errors = list(result.errors)
        candidates = result.parsed_transactions
        duplicates = result.duplicate_count

        if resolve_categories and self.categories is not None:
            candidates, rejected, promoted = await self._resolve(result, self.categories)
            errors.extend(rejected)
            errors.sort(key=lambda e: e.line_number)
            duplicates -= promoted

        outcome = await self.transactions.import_many(candidates, dedupe=True)
        report = ImportReport(
            imported=outcome.imported,
            duplicates=duplicates + outcome.duplicates,
            errors=errors,
        )
        logger.info(
            "Import finished: %d imported, %d duplicates, %d errors",
            report.imported,
            report.duplicates,
            report.error_count,
        )
        return report

    async def _resolve(
        self, result: CSVParseResult, categories: CategoryRepository
    ) -> tuple[list[Transaction], list[CSVRowError], int]:
        """Resolve category cells; return the kept rows, the rejected ones and
        how many in-file repeats were promoted in place of a rejected row."""
        lookup = _category_lookup(await categories.find_all())
        repeats: dict[str, list[Transaction]] = {}
        for repeat in result.repeats:
            repeats.setdefault(content_hash(repeat), []).append(repeat)

        resolved: list[Transaction] = []
        rejected: list[CSVRowError] = []
        promoted = 0

        for transaction in result.parsed_transactions:
            waiting = repeats.get(content_hash(transaction), [])
            candidate: Transaction | None = transaction
            while candidate is not None:
                outcome = _resolve_row(candidate, lookup, result.sources)
                if isinstance(outcome, Transaction):
                    resolved.append(outcome)
                    break
                rejected.append(outcome)
                # the next repeat of a rejected row is no longer a duplicate
                candidate = waiting.pop(0) if waiting else None
                if candidate is not None:
                    promoted += 1

        return resolved, rejected, promoted


def _resolve_row(
    transaction: Transaction,
    lookup: dict[str, str],
    sources: dict[str, tuple[int, str]],
) -> Transaction | CSVRowError:
    cell = transaction.category_id
    if cell is None:
        return transaction

    category_id = lookup.get(cell) or lookup.get(cell.casefold()) or lookup.get(slugify(cell))
    if category_id is not None:
        return transaction.update(category_id=category_id)

    line_number, raw_line = sources.get(str(transaction.id), (0, ""))
    logger.debug("Unknown category %r on line %d", cell, line_number)
    return CSVRowError(
        line_number=line_number,
        message=f'Category "{cell}" not found',
        raw_line=raw_line,
        error_type="UnknownCategory",
    )
