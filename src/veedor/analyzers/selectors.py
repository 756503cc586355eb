"""
Selectors — pure aggregation over a :class:`FinancialSnapshot`.

Monthly totals, the top-spending category ranking and budget progress are
the three reports the rest of the application is built around. Every
function here reads the snapshot and returns new values; nothing is mutated
and calling twice with the same snapshot yields the same result.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal

from veedor.models.financial import Budget, Category, FinancialSnapshot, Transaction
from veedor.models.report import BudgetProgress, BudgetStatus, CategorySpending, MonthlyTotals

logger = logging.getLogger("veedor.analyzers.selectors")

UNCATEGORIZED_NAME = "Sin categoría"
DEFAULT_WARN_AT = Decimal(80)
DEFAULT_DANGER_AT = Decimal(100)

_CENT = Decimal("0.01")
_ZERO = Decimal("0.00")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _in_month(transactions: tuple[Transaction, ...], year: int, month: int) -> list[Transaction]:
    return [t for t in transactions if t.is_in_month(year, month)]


def category_names(snapshot: FinancialSnapshot) -> dict[str, str]:
    """Map category id to display name."""
    return {str(c.id): c.name for c in snapshot.categories}


def _status_for(percentage: Decimal, warn_at: Decimal, danger_at: Decimal) -> BudgetStatus:
    if percentage >= danger_at:
        return BudgetStatus.DANGER
    if percentage >= warn_at:
        return BudgetStatus.WARN
    return BudgetStatus.OK


def _spent_percentage(spent: Decimal, limit: Decimal) -> Decimal:
    if limit <= 0:
        return Decimal(0)
    return spent / limit * 100


# ---------------------------------------------------------------------------
# Monthly totals
# ---------------------------------------------------------------------------


def monthly_totals(snapshot: FinancialSnapshot, year: int, month: int) -> MonthlyTotals:
    """Income, expenses and savings for the month. Zero amounts count for neither."""
    income = Decimal(0)
    expenses = Decimal(0)
    for transaction in _in_month(snapshot.transactions, year, month):
        if transaction.is_income:
            income += transaction.amount.value
        elif transaction.is_expense:
            expenses += abs(transaction.amount.value)

    return MonthlyTotals(
        year=year,
        month=month,
        income=_cents(income),
        expenses=_cents(expenses),
        savings=_cents(income - expenses),
    )


def monthly_balance(snapshot: FinancialSnapshot, year: int, month: int) -> Decimal:
    return monthly_totals(snapshot, year, month).savings


def monthly_income(snapshot: FinancialSnapshot, year: int, month: int) -> Decimal:
    return monthly_totals(snapshot, year, month).income


def monthly_expenses(snapshot: FinancialSnapshot, year: int, month: int) -> Decimal:
    return monthly_totals(snapshot, year, month).expenses


# ---------------------------------------------------------------------------
# Category ranking
# ---------------------------------------------------------------------------


def top_spending_categories(
    snapshot: FinancialSnapshot,
    year: int,
    month: int,
    limit: int = 5,
) -> list[CategorySpending]:
    """Rank categories by absolute expense in the month.

    Only expenses with a category id are grouped. An id that matches no known
    category is still ranked, under the placeholder name. Ties are ordered by
    category name, then id, so the ranking is deterministic.
    """
    if limit <= 0:
        return []

    totals: dict[str, Decimal] = defaultdict(Decimal)
    for transaction in _in_month(snapshot.transactions, year, month):
        if transaction.is_expense and transaction.category_id:
            totals[transaction.category_id] += abs(transaction.amount.value)

    grand_total = sum(totals.values(), Decimal(0))
    names = category_names(snapshot)

    ranking = []
    for category_id, amount in totals.items():
        percentage = amount / grand_total * 100 if grand_total > 0 else Decimal(0)
        ranking.append(
            CategorySpending(
                category_id=category_id,
                category_name=names.get(category_id, UNCATEGORIZED_NAME),
                amount=_cents(amount),
                percentage=_cents(percentage),
            )
        )

    ranking.sort(key=lambda row: (-row.amount, row.category_name, row.category_id))
    return ranking[:limit]


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------


def transactions_by_category(
    snapshot: FinancialSnapshot,
    category_id: str,
    year: int | None = None,
    month: int | None = None,
) -> list[Transaction]:
    """Transactions in a category, optionally restricted to one month."""
    matches = [t for t in snapshot.transactions if t.category_id == category_id]
    if year is not None and month is not None:
        matches = [t for t in matches if t.is_in_month(year, month)]
    return matches


def total_spent_by_category(
    snapshot: FinancialSnapshot,
    category_id: str,
    year: int | None = None,
    month: int | None = None,
) -> Decimal:
    """Sum of absolute expense amounts in a category."""
    spent = sum(
        (abs(t.amount.value) for t in transactions_by_category(snapshot, category_id, year, month) if t.is_expense),
        Decimal(0),
    )
    return _cents(spent)


def budget_by_category(snapshot: FinancialSnapshot, category_id: str) -> Budget | None:
    for budget in snapshot.budgets:
        if budget.category_id == category_id:
            return budget
    return None


def budget_progress(
    snapshot: FinancialSnapshot,
    year: int,
    month: int,
    warn_at: Decimal = DEFAULT_WARN_AT,
    danger_at: Decimal = DEFAULT_DANGER_AT,
) -> list[BudgetProgress]:
    """One progress row per budget, in budget order.

    The status is decided on the exact percentage; only the reported
    percentage is rounded to two decimals.
    """
    names = category_names(snapshot)
    progress = []
    for budget in snapshot.budgets:
        spent = total_spent_by_category(snapshot, budget.category_id, year, month)
        limit = budget.monthly_limit.value
        percentage = _spent_percentage(spent, limit)
        progress.append(
            BudgetProgress(
                budget_id=str(budget.id),
                category_id=budget.category_id,
                category_name=names.get(budget.category_id, UNCATEGORIZED_NAME),
                limit=limit,
                spent=spent,
                remaining=max(_ZERO, _cents(limit - spent)),
                percentage=_cents(percentage),
                status=_status_for(percentage, warn_at, danger_at),
            )
        )

    logger.debug("Computed progress for %d budgets in %04d-%02d", len(progress), year, month)
    return progress


def budget_status(
    snapshot: FinancialSnapshot,
    category_id: str,
    year: int,
    month: int,
    warn_at: Decimal = DEFAULT_WARN_AT,
    danger_at: Decimal = DEFAULT_DANGER_AT,
) -> BudgetStatus:
    """Status for one category. A category without a budget is always ``ok``."""
    budget = budget_by_category(snapshot, category_id)
    if budget is None:
        return BudgetStatus.OK
    spent = total_spent_by_category(snapshot, category_id, year, month)
    return _status_for(_spent_percentage(spent, budget.monthly_limit.value), warn_at, danger_at)


def _budgeted_ids(snapshot: FinancialSnapshot) -> set[str]:
    return {b.category_id for b in snapshot.budgets}


def categories_with_budget(snapshot: FinancialSnapshot) -> list[Category]:
    budgeted = _budgeted_ids(snapshot)
    return [c for c in snapshot.categories if str(c.id) in budgeted]


def categories_without_budget(snapshot: FinancialSnapshot) -> list[Category]:
    budgeted = _budgeted_ids(snapshot)
    return [c for c in snapshot.categories if str(c.id) not in budgeted]


def available_categories(snapshot: FinancialSnapshot) -> list[Category]:
    """Categories sorted by name, case-insensitively. Returns a new list."""
    return sorted(snapshot.categories, key=lambda c: (c.name.casefold(), c.name))
