"""
Veedor — personal finance tracker.

Record income and expenses, group them by category, set monthly budgets
and see where the money goes.
"""

__version__ = "0.1.0"
__all__ = [
    "Budget",
    "CalendarDate",
    "Category",
    "FinancialSnapshot",
    "Identifier",
    "MonetaryAmount",
    "Transaction",
    "UserSettings",
    "VeedorConfig",
]

from veedor.config import VeedorConfig  # noqa: E402
from veedor.models.financial import (  # noqa: E402
    Budget,
    Category,
    FinancialSnapshot,
    Transaction,
    UserSettings,
)
from veedor.models.values import CalendarDate, Identifier, MonetaryAmount  # noqa: E402
