"""
Repository ports — async interfaces the application persists through.

``find`` returns ``None`` when nothing matches; ``update`` and ``remove`` raise
:class:`~veedor.errors.NotFoundError`. Uniqueness rules (content hash for
transactions, slug for categories, one budget per category) are enforced by
``add`` and raise :class:`~veedor.errors.UniquenessViolation` subclasses.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from veedor.models.financial import Budget, Category, Transaction, UserSettings
    from veedor.models.report import MonthlyTotals
    from veedor.models.values import CalendarDate, Identifier, MonetaryAmount


@dataclass(frozen=True)
class ImportOutcome:
    """Counts from a bulk import."""

    imported: int = 0
    duplicates: int = 0


class TransactionRepository(ABC):
    @abstractmethod
    async def find(self, transaction_id: Identifier | str) -> Transaction | None: ...

    @abstractmethod
    async def find_all(self) -> list[Transaction]: ...

    @abstractmethod
    async def find_by_month(self, year: int, month: int) -> list[Transaction]: ...

    @abstractmethod
    async def find_by_date_range(self, start: CalendarDate, end: CalendarDate) -> list[Transaction]: ...

    @abstractmethod
    async def find_by_category(self, category_id: str) -> list[Transaction]: ...

    @abstractmethod
    async def find_by_account(self, account_id: str) -> list[Transaction]: ...

    @abstractmethod
    async def add(self, transaction: Transaction) -> None:
        """Store *transaction*; raises ``DuplicateTransaction`` on a content match."""

    @abstractmethod
    async def update(self, transaction_id: Identifier | str, **changes: Any) -> Transaction: ...

    @abstractmethod
    async def remove(self, transaction_id: Identifier | str) -> None: ...

    @abstractmethod
    async def import_many(self, transactions: Sequence[Transaction], dedupe: bool = True) -> ImportOutcome:
        """Store many transactions in one write.

        With ``dedupe`` set, transactions matching a stored one (or one earlier
        in *transactions*) are skipped. Either way ``duplicates`` counts them.
        """

    @abstractmethod
    async def total_by_category(
        self,
        category_id: str,
        start: CalendarDate | None = None,
        end: CalendarDate | None = None,
    ) -> MonetaryAmount:
        """Signed sum of the category's amounts, optionally within a date range."""

    @abstractmethod
    async def total_by_month(self, year: int, month: int) -> MonthlyTotals: ...


class CategoryRepository(ABC):
    @abstractmethod
    async def find(self, category_id: Identifier | str) -> Category | None: ...

    @abstractmethod
    async def find_by_slug(self, slug: str) -> Category | None: ...

    @abstractmethod
    async def find_all(self) -> list[Category]: ...

    @abstractmethod
    async def add(self, category: Category) -> None: ...

    @abstractmethod
    async def update(self, category_id: Identifier | str, **changes: Any) -> Category: ...

    @abstractmethod
    async def remove(self, category_id: Identifier | str) -> None: ...

    @abstractmethod
    async def exists(self, category_id: Identifier | str) -> bool: ...

    @abstractmethod
    async def exists_by_slug(self, slug: str) -> bool: ...


class BudgetRepository(ABC):
    @abstractmethod
    async def find(self, budget_id: Identifier | str) -> Budget | None: ...

    @abstractmethod
    async def find_by_category(self, category_id: str) -> Budget | None: ...

    @abstractmethod
    async def find_all(self) -> list[Budget]: ...

    @abstractmethod
    async def add(self, budget: Budget) -> None: ...

    @abstractmethod
    async def update(self, budget_id: Identifier | str, **changes: Any) -> Budget: ...

    @abstractmethod
    async def remove(self, budget_id: Identifier | str) -> None: ...

    @abstractmethod
    async def exists(self, budget_id: Identifier | str) -> bool: ...

    @abstractmethod
    async def exists_by_category(self, category_id: str) -> bool: ...


class SettingsRepository(ABC):
    @abstractmethod
    async def get(self) -> UserSettings: ...

    @abstractmethod
    async def update(self, **changes: Any) -> UserSettings: ...

    @abstractmethod
    async def reset(self) -> UserSettings: ...
