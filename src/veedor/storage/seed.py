"""
Demo data — a month of typical household movements.

``seed_if_empty`` fills an empty workspace with eight categories, a month of
transactions dated in the reference month, and six budgets.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from veedor.models.financial import Budget, Category, Transaction
from veedor.models.values import CalendarDate

if TYPE_CHECKING:
    from veedor.storage.base import BudgetRepository, CategoryRepository, TransactionRepository

logger = logging.getLogger("veedor.storage.seed")

_CATEGORIES = [
    ("Alquiler", "#FF6B6B"),
    ("Comida", "#4ECDC4"),
    ("Transporte", "#45B7D1"),
    ("Suscripciones", "#96CEB4"),
    ("Ocio", "#FFEAA7"),
    ("Supermercado", "#DDA0DD"),
    ("Salud", "#98D8C8"),
    ("Ingresos", "#6C5CE7"),
]

# (day of month, description, category, amount, merchant)
_TRANSACTIONS = [
    (1, "Sueldo mensual", "Ingresos", "2500.00", None),
    (3, "Alquiler piso", "Alquiler", "-800.00", None),
    (5, "Seguro de coche", "Transporte", "-120.00", None),
    (8, "Compra semanal Mercadona", "Supermercado", "-85.50", "Mercadona"),
    (10, "Abono transporte mensual", "Transporte", "-40.00", None),
    (12, "Freelance proyecto web", "Ingresos", "800.00", None),
    (15, "Netflix", "Suscripciones", "-15.99", "Netflix"),
    (18, "Spotify Premium", "Suscripciones", "-9.99", "Spotify"),
    (20, "Cena restaurante", "Comida", "-45.80", "Restaurante El Buen Sabor"),
    (22, "Cine", "Ocio", "-12.50", "Cinesa"),
    (25, "Gasolina", "Transporte", "-55.00", "Repsol"),
    (28, "Libros Amazon", "Ocio", "-28.90", "Amazon"),
    (29, "Compra Carrefour", "Supermercado", "-62.30", "Carrefour"),
    (30, "Farmacia", "Salud", "-35.60", "Farmacia Central"),
]

_BUDGETS = [
    ("Alquiler", "800.00"),
    ("Comida", "300.00"),
    ("Transporte", "150.00"),
    ("Suscripciones", "50.00"),
    ("Ocio", "200.00"),
    ("Supermercado", "400.00"),
]


@dataclass(frozen=True)
class SeedSummary:
    categories: int = 0
    transactions: int = 0
    budgets: int = 0


def generate_categories() -> list[Category]:
    return [Category(name=name, color_hex=color) for name, color in _CATEGORIES]


def _ids_by_name(categories: list[Category]) -> dict[str, str]:
    return {c.name: str(c.id) for c in categories}


def generate_transactions(categories: list[Category], reference: CalendarDate | None = None) -> list[Transaction]:
    """Transactions spread over the reference month (today's by default).

    Days past the end of a short month are moved to its last day.
    """
    reference = reference or CalendarDate.today()
    last_day = calendar.monthrange(reference.year, reference.month)[1]
    ids = _ids_by_name(categories)
    return [
        Transaction(
            date=CalendarDate.of(reference.year, reference.month, min(day, last_day)),
            description=description,
            category_id=ids.get(category),
            amount=Decimal(amount),
            merchant=merchant,
        )
        for day, description, category, amount, merchant in _TRANSACTIONS
    ]


def generate_budgets(categories: list[Category]) -> list[Budget]:
    ids = _ids_by_name(categories)
    return [
        Budget(category_id=ids[name], monthly_limit=Decimal(limit))
        for name, limit in _BUDGETS
        if name in ids
    ]


async def seed_if_empty(
    transactions: TransactionRepository,
    categories: CategoryRepository,
    budgets: BudgetRepository,
    reference: CalendarDate | None = None,
) -> SeedSummary:
    """Insert the demo data unless categories already exist."""
    if await categories.find_all():
        logger.info("Workspace already has categories, skipping seed")
        return SeedSummary()

    new_categories = generate_categories()
    new_transactions = generate_transactions(new_categories, reference)
    new_budgets = generate_budgets(new_categories)

    for category in new_categories:
        await categories.add(category)
    await transactions.import_many(new_transactions, dedupe=True)
    for budget in new_budgets:
        await budgets.add(budget)

    logger.info(
        "Seeded %d categories, %d transactions, %d budgets",
        len(new_categories),
        len(new_transactions),
        len(new_budgets),
    )
    return SeedSummary(
        categories=len(new_categories),
        transactions=len(new_transactions),
        budgets=len(new_budgets),
    )
