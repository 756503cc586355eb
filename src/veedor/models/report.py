"""
Report records produced by the selectors — monthly totals, category ranking, budget progress.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class BudgetStatus(str, Enum):
    """Traffic-light status of a budget for one month."""

    OK = "ok"  # < 80%
    WARN = "warn"  # 80% up to, not including, 100%
    DANGER = "danger"  # >= 100%


class MonthlyTotals(BaseModel):
    """Income, expenses and savings for one calendar month.

    ``expenses`` is the sum of absolute values of the negative amounts, so it is
    never negative. ``savings`` is ``income - expenses`` and may be.
    """

    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(ge=1, le=12)
    income: Decimal = Decimal("0.00")
    expenses: Decimal = Decimal("0.00")
    savings: Decimal = Decimal("0.00")


class CategorySpending(BaseModel):
    """One row of the top-spending ranking."""

    model_config = ConfigDict(frozen=True)

    category_id: str
    category_name: str
    amount: Decimal = Field(description="Absolute amount spent in the month")
    percentage: Decimal = Field(description="Share of grouped expenses, 2 decimals")


class BudgetProgress(BaseModel):
    """How one budget is tracking in a given month."""

    model_config = ConfigDict(frozen=True)

    budget_id: str
    category_id: str
    category_name: str
    limit: Decimal
    spent: Decimal
    remaining: Decimal = Field(description="max(0, limit - spent)")
    percentage: Decimal = Field(description="Rounded for display; may exceed 100")
    status: BudgetStatus = BudgetStatus.OK
