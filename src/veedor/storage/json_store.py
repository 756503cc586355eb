"""
JSON-file repositories.

All four repositories share one :class:`JSONStore`, a single JSON document
with one array per entity type plus the settings object::

    {"transactions": [...], "categories": [...], "budgets": [...], "settings": {...}}

Content hashes are not persisted; they are recomputed from the stored
transactions whenever a uniqueness check needs them. A store created without
a path keeps the document in memory only, which is what the tests use.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from veedor.analyzers import selectors
from veedor.analyzers.duplicate_detector import DuplicateDetector, content_hash
from veedor.errors import DuplicateTransaction, NotFoundError, StorageError, UniquenessViolation
from veedor.models.financial import (
    DEFAULT_USER_SETTINGS,
    Budget,
    Category,
    FinancialSnapshot,
    Transaction,
    UserSettings,
)
from veedor.models.report import MonthlyTotals
from veedor.models.values import CalendarDate, Identifier, MonetaryAmount
from veedor.storage.base import (
    BudgetRepository,
    CategoryRepository,
    ImportOutcome,
    SettingsRepository,
    TransactionRepository,
)

logger = logging.getLogger("veedor.storage.json")

_COLLECTIONS = ("transactions", "categories", "budgets")


def _key(entity_id: Identifier | str) -> str:
    return str(entity_id)


class JSONStore:
    """A JSON document on disk (or in memory when ``path`` is ``None``)."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._document: dict[str, Any] | None = None

    @staticmethod
    def _empty() -> dict[str, Any]:
        return {"transactions": [], "categories": [], "budgets": [], "settings": None}

    def _load(self) -> dict[str, Any]:
        if self._document is not None:
            return self._document

        document = self._empty()
        if self.path is not None and self.path.exists():
            try:
                loaded = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Unreadable data file %s: %s", self.path, e)
                raise StorageError(f"Cannot read data file {self.path}: {e}") from e
            if not isinstance(loaded, dict):
                logger.warning("Data file %s does not hold a JSON object", self.path)
                raise StorageError(f"Data file {self.path} does not hold a JSON object")
            document.update(loaded)
            logger.debug("Loaded data file %s", self.path)

        self._document = document
        return document

    def _commit(self, document: dict[str, Any]) -> None:
        """Write *document* to disk, then make it the cached copy.

        On failure the cache and the file both keep their previous content.
        """
        if self.path is not None:
            tmp = self.path.with_name(self.path.name + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
                os.replace(tmp, self.path)
            except OSError as e:
                tmp.unlink(missing_ok=True)
                raise StorageError(f"Cannot write data file {self.path}: {e}") from e
            logger.debug("Saved data file %s", self.path)
        self._document = document

    def records(self, collection: str) -> list[dict[str, Any]]:
        """A copy of the raw records of *collection*."""
        return [dict(record) for record in self._load().get(collection) or []]

    def write(self, collection: str, records: list[dict[str, Any]]) -> None:
        self._commit({**self._load(), collection: records})

    def settings(self) -> dict[str, Any] | None:
        return self._load().get("settings")

    def write_settings(self, data: dict[str, Any] | None) -> None:
        self._commit({**self._load(), "settings": data})

    def is_empty(self) -> bool:
        document = self._load()
        return not any(document.get(name) for name in _COLLECTIONS)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class JSONTransactionRepository(TransactionRepository):
    def __init__(self, store: JSONStore) -> None:
        self.store = store

    def _all(self) -> list[Transaction]:
        return [Transaction.from_json(record) for record in self.store.records("transactions")]

    def _save(self, transactions: list[Transaction]) -> None:
        self.store.write("transactions", [t.to_json() for t in transactions])

    def _index_of(self, transactions: list[Transaction], transaction_id: Identifier | str) -> int:
        wanted = _key(transaction_id)
        for index, transaction in enumerate(transactions):
            if str(transaction.id) == wanted:
                return index
        raise NotFoundError("Transaction", wanted)

    async def find(self, transaction_id: Identifier | str) -> Transaction | None:
        wanted = _key(transaction_id)
        return next((t for t in self._all() if str(t.id) == wanted), None)

    async def find_all(self) -> list[Transaction]:
        return self._all()

    async def find_by_month(self, year: int, month: int) -> list[Transaction]:
        return [t for t in self._all() if t.is_in_month(year, month)]

    async def find_by_date_range(self, start: CalendarDate, end: CalendarDate) -> list[Transaction]:
        return [t for t in self._all() if t.is_in_date_range(start, end)]

    async def find_by_category(self, category_id: str) -> list[Transaction]:
        return [t for t in self._all() if t.category_id == category_id]

    async def find_by_account(self, account_id: str) -> list[Transaction]:
        return [t for t in self._all() if t.account_id == account_id]

    async def add(self, transaction: Transaction) -> None:
        transactions = self._all()
        if any(t.id == transaction.id for t in transactions):
            raise UniquenessViolation(f"Transaction with id {transaction.id} already exists")
        detector = DuplicateDetector(content_hash(t) for t in transactions)
        if detector.seen(transaction):
            raise DuplicateTransaction(
                f"Duplicate transaction: {transaction.date} {transaction.description} {transaction.amount}"
            )
        transactions.append(transaction)
        self._save(transactions)

    async def update(self, transaction_id: Identifier | str, **changes: Any) -> Transaction:
        transactions = self._all()
        index = self._index_of(transactions, transaction_id)
        current = transactions[index]
        updated = current.update(**changes)

        new_hash = content_hash(updated)
        if new_hash != content_hash(current):
            others = (t for i, t in enumerate(transactions) if i != index)
            if any(content_hash(t) == new_hash for t in others):
                raise DuplicateTransaction("The update would duplicate an existing transaction")

        transactions[index] = updated
        self._save(transactions)
        return updated

    async def remove(self, transaction_id: Identifier | str) -> None:
        transactions = self._all()
        del transactions[self._index_of(transactions, transaction_id)]
        self._save(transactions)

    async def import_many(self, transactions: Sequence[Transaction], dedupe: bool = True) -> ImportOutcome:
        stored = self._all()
        detector = DuplicateDetector(content_hash(t) for t in stored)
        stored_ids = {str(t.id) for t in stored}
        imported = 0
        duplicates = 0

        for transaction in transactions:
            if detector.check_and_register(transaction):
                duplicates += 1
                if dedupe:
                    continue
            if str(transaction.id) in stored_ids:
                raise UniquenessViolation(f"Transaction with id {transaction.id} already exists")
            stored_ids.add(str(transaction.id))
            stored.append(transaction)
            imported += 1

        if imported:
            self._save(stored)
        logger.info("Imported %d transactions (%d duplicates)", imported, duplicates)
        return ImportOutcome(imported=imported, duplicates=duplicates)

    async def total_by_category(
        self,
        category_id: str,
        start: CalendarDate | None = None,
        end: CalendarDate | None = None,
    ) -> MonetaryAmount:
        matches = await self.find_by_category(category_id)
        if start is not None and end is not None:
            matches = [t for t in matches if t.is_in_date_range(start, end)]
        total = MonetaryAmount.zero()
        for transaction in matches:
            total = total.add(transaction.amount)
        return total

    async def total_by_month(self, year: int, month: int) -> MonthlyTotals:
        snapshot = FinancialSnapshot(transactions=tuple(await self.find_by_month(year, month)))
        return selectors.monthly_totals(snapshot, year, month)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class JSONCategoryRepository(CategoryRepository):
    def __init__(self, store: JSONStore) -> None:
        self.store = store

    def _all(self) -> list[Category]:
        return [Category.from_json(record) for record in self.store.records("categories")]

    def _save(self, categories: list[Category]) -> None:
        self.store.write("categories", [c.to_json() for c in categories])

    def _index_of(self, categories: list[Category], category_id: Identifier | str) -> int:
        wanted = _key(category_id)
        for index, category in enumerate(categories):
            if str(category.id) == wanted:
                return index
        raise NotFoundError("Category", wanted)

    async def find(self, category_id: Identifier | str) -> Category | None:
        wanted = _key(category_id)
        return next((c for c in self._all() if str(c.id) == wanted), None)

    async def find_by_slug(self, slug: str) -> Category | None:
        return next((c for c in self._all() if c.slug == slug), None)

    async def find_all(self) -> list[Category]:
        return self._all()

    async def add(self, category: Category) -> None:
        categories = self._all()
        if any(c.id == category.id for c in categories):
            raise UniquenessViolation(f"Category with id {category.id} already exists")
        if any(c.slug == category.slug for c in categories):
            raise UniquenessViolation(f"A category with slug '{category.slug}' already exists")
        categories.append(category)
        self._save(categories)

    async def update(self, category_id: Identifier | str, **changes: Any) -> Category:
        categories = self._all()
        index = self._index_of(categories, category_id)
        updated = categories[index].update(**changes)
        if any(c.slug == updated.slug for i, c in enumerate(categories) if i != index):
            raise UniquenessViolation(f"A category with slug '{updated.slug}' already exists")
        categories[index] = updated
        self._save(categories)
        return updated

    async def remove(self, category_id: Identifier | str) -> None:
        categories = self._all()
        del categories[self._index_of(categories, category_id)]
        self._save(categories)

    async def exists(self, category_id: Identifier | str) -> bool:
        return await self.find(category_id) is not None

    async def exists_by_slug(self, slug: str) -> bool:
        return await self.find_by_slug(slug) is not None


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------


class JSONBudgetRepository(BudgetRepository):
    def __init__(self, store: JSONStore) -> None:
        self.store = store

    def _all(self) -> list[Budget]:
        return [Budget.from_json(record) for record in self.store.records("budgets")]

    def _save(self, budgets: list[Budget]) -> None:
        self.store.write("budgets", [b.to_json() for b in budgets])

    def _index_of(self, budgets: list[Budget], budget_id: Identifier | str) -> int:
        wanted = _key(budget_id)
        for index, budget in enumerate(budgets):
            if str(budget.id) == wanted:
                return index
        raise NotFoundError("Budget", wanted)

    async def find(self, budget_id: Identifier | str) -> Budget | None:
        wanted = _key(budget_id)
        return next((b for b in self._all() if str(b.id) == wanted), None)

    async def find_by_category(self, category_id: str) -> Budget | None:
        return next((b for b in self._all() if b.category_id == category_id), None)

    async def find_all(self) -> list[Budget]:
        return self._all()

    async def add(self, budget: Budget) -> None:
        budgets = self._all()
        if any(b.id == budget.id for b in budgets):
            raise UniquenessViolation(f"Budget with id {budget.id} already exists")
        if any(b.category_id == budget.category_id for b in budgets):
            raise UniquenessViolation(f"Category {budget.category_id} already has a budget")
        budgets.append(budget)
        self._save(budgets)

    async def update(self, budget_id: Identifier | str, **changes: Any) -> Budget:
        budgets = self._all()
        index = self._index_of(budgets, budget_id)
        updated = budgets[index].update(**changes)
        if any(b.category_id == updated.category_id for i, b in enumerate(budgets) if i != index):
            raise UniquenessViolation(f"Category {updated.category_id} already has a budget")
        budgets[index] = updated
        self._save(budgets)
        return updated

    async def remove(self, budget_id: Identifier | str) -> None:
        budgets = self._all()
        del budgets[self._index_of(budgets, budget_id)]
        self._save(budgets)

    async def exists(self, budget_id: Identifier | str) -> bool:
        return await self.find(budget_id) is not None

    async def exists_by_category(self, category_id: str) -> bool:
        return await self.find_by_category(category_id) is not None


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class JSONSettingsRepository(SettingsRepository):
    """Settings fall back to *defaults* until something is saved."""

    def __init__(self, store: JSONStore, defaults: UserSettings = DEFAULT_USER_SETTINGS) -> None:
        self.store = store
        self.defaults = defaults

    async def get(self) -> UserSettings:
        data = self.store.settings()
        if not data:
            return self.defaults
        return UserSettings.from_json(data)

    async def update(self, **changes: Any) -> UserSettings:
        updated = (await self.get()).update(**changes)
        self.store.write_settings(updated.to_json())
        return updated

    async def reset(self) -> UserSettings:
        self.store.write_settings(self.defaults.to_json())
        return self.defaults


# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------


@dataclass
class JSONWorkspace:
    """The four repositories over one store."""

    store: JSONStore
    transactions: JSONTransactionRepository
    categories: JSONCategoryRepository
    budgets: JSONBudgetRepository
    settings: JSONSettingsRepository

    @classmethod
    def open(cls, path: str | Path | None = None, defaults: UserSettings = DEFAULT_USER_SETTINGS) -> JSONWorkspace:
        store = JSONStore(path)
        return cls(
            store=store,
            transactions=JSONTransactionRepository(store),
            categories=JSONCategoryRepository(store),
            budgets=JSONBudgetRepository(store),
            settings=JSONSettingsRepository(store, defaults),
        )

    async def snapshot(self) -> FinancialSnapshot:
        return FinancialSnapshot(
            transactions=tuple(await self.transactions.find_all()),
            categories=tuple(await self.categories.find_all()),
            budgets=tuple(await self.budgets.find_all()),
        )
