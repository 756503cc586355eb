"""Tests for the aggregation selectors."""

from decimal import Decimal

import pytest

from veedor.analyzers import selectors
from veedor.models.financial import Budget, Category, FinancialSnapshot, Transaction
from veedor.models.report import BudgetStatus
from veedor.models.values import CalendarDate


def _txn(day: int, description: str, amount: float, category: Category | None = None, month: int = 1) -> Transaction:
    return Transaction(
        date=CalendarDate.of(2024, month, day),
        description=description,
        category_id=str(category.id) if category else None,
        amount=amount,
    )


@pytest.fixture
def categories() -> dict[str, Category]:
    return {
        "comida": Category(name="Comida", color_hex="#FF6B6B"),
        "transporte": Category(name="Transporte", color_hex="#4ECDC4"),
        "ingresos": Category(name="Ingresos", color_hex="#45B7D1"),
    }


@pytest.fixture
def snapshot(categories: dict[str, Category]) -> FinancialSnapshot:
    comida, transporte, ingresos = categories["comida"], categories["transporte"], categories["ingresos"]
    return FinancialSnapshot(
        transactions=[
            _txn(15, "Sueldo", 2500.00, ingresos),
            _txn(16, "Compra supermercado", -85.50, comida),
            _txn(17, "Transporte público", -12.30, transporte),
            _txn(18, "Cena restaurante", -45.80, comida),
            _txn(3, "Gasolina", -60.00, transporte, month=2),
        ],
        categories=list(categories.values()),
        budgets=[
            Budget(category_id=str(comida.id), monthly_limit=200),
            Budget(category_id=str(transporte.id), monthly_limit=50),
        ],
    )


class TestMonthlyTotals:
    def test_totals(self, snapshot: FinancialSnapshot) -> None:
        totals = selectors.monthly_totals(snapshot, 2024, 1)
        assert totals.income == Decimal("2500.00")
        assert totals.expenses == Decimal("143.60")
        assert totals.savings == Decimal("2356.40")

    def test_empty_month(self, snapshot: FinancialSnapshot) -> None:
        totals = selectors.monthly_totals(snapshot, 2024, 3)
        assert totals.income == totals.expenses == totals.savings == Decimal("0")

    def test_zero_amounts_ignored(self) -> None:
        snapshot = FinancialSnapshot(transactions=[_txn(1, "Ajuste", 0)])
        totals = selectors.monthly_totals(snapshot, 2024, 1)
        assert totals.income == Decimal("0")
        assert totals.expenses == Decimal("0")

    def test_shortcuts(self, snapshot: FinancialSnapshot) -> None:
        assert selectors.monthly_balance(snapshot, 2024, 1) == Decimal("2356.40")
        assert selectors.monthly_income(snapshot, 2024, 1) == Decimal("2500.00")
        assert selectors.monthly_expenses(snapshot, 2024, 1) == Decimal("143.60")


class TestTopSpendingCategories:
    def test_ranking(self, snapshot: FinancialSnapshot) -> None:
        ranking = selectors.top_spending_categories(snapshot, 2024, 1)
        assert [row.category_name for row in ranking] == ["Comida", "Transporte"]
        assert ranking[0].amount == Decimal("131.30")
        assert ranking[0].percentage == Decimal("91.43")
        assert ranking[1].amount == Decimal("12.30")
        assert ranking[1].percentage == Decimal("8.57")

    def test_limit(self, snapshot: FinancialSnapshot) -> None:
        ranking = selectors.top_spending_categories(snapshot, 2024, 1, limit=1)
        assert len(ranking) == 1
        assert ranking[0].category_name == "Comida"
        assert selectors.top_spending_categories(snapshot, 2024, 1, limit=0) == []

    def test_unknown_category_uses_placeholder(self) -> None:
        orphan = Transaction(
            date=CalendarDate.of(2024, 1, 5), description="Misterio", category_id="borrada", amount=-10
        )
        ranking = selectors.top_spending_categories(FinancialSnapshot(transactions=[orphan]), 2024, 1)
        assert ranking[0].category_id == "borrada"
        assert ranking[0].category_name == selectors.UNCATEGORIZED_NAME
        assert ranking[0].percentage == Decimal("100.00")

    def test_ties_ordered_by_name(self) -> None:
        ocio = Category(name="Ocio", color_hex="#FFEAA7")
        alquiler = Category(name="Alquiler", color_hex="#FF6B6B")
        snapshot = FinancialSnapshot(
            transactions=[_txn(2, "Cine", -20, ocio), _txn(3, "Garaje", -20, alquiler)],
            categories=[ocio, alquiler],
        )
        ranking = selectors.top_spending_categories(snapshot, 2024, 1)
        assert [row.category_name for row in ranking] == ["Alquiler", "Ocio"]

    def test_uncategorized_expenses_excluded(self) -> None:
        snapshot = FinancialSnapshot(transactions=[_txn(1, "Efectivo", -30)])
        assert selectors.top_spending_categories(snapshot, 2024, 1) == []


class TestBudgetProgress:
    def test_progress(self, snapshot: FinancialSnapshot) -> None:
        progress = {row.category_name: row for row in selectors.budget_progress(snapshot, 2024, 1)}

        comida = progress["Comida"]
        assert comida.limit == Decimal("200.00")
        assert comida.spent == Decimal("131.30")
        assert comida.remaining == Decimal("68.70")
        assert comida.percentage == Decimal("65.65")
        assert comida.status == BudgetStatus.OK

        transporte = progress["Transporte"]
        assert transporte.spent == Decimal("12.30")
        assert transporte.remaining == Decimal("37.70")
        assert transporte.percentage == Decimal("24.60")

    def test_danger_when_exceeded(self, snapshot: FinancialSnapshot, categories: dict[str, Category]) -> None:
        tight = snapshot.model_copy(
            update={"budgets": (Budget(category_id=str(categories["comida"].id), monthly_limit=100),)}
        )
        (row,) = selectors.budget_progress(tight, 2024, 1)
        assert row.status == BudgetStatus.DANGER
        assert row.remaining == Decimal("0.00")
        assert row.percentage == Decimal("131.30")

    def test_warn_uses_unrounded_percentage(self, categories: dict[str, Category]) -> None:
        comida = categories["comida"]
        snapshot = FinancialSnapshot(
            transactions=[_txn(5, "Compra", -299.99, comida)],
            categories=[comida],
            budgets=[Budget(category_id=str(comida.id), monthly_limit=300)],
        )
        (row,) = selectors.budget_progress(snapshot, 2024, 1)
        assert row.percentage == Decimal("100.00")
        assert row.status == BudgetStatus.WARN

    def test_zero_limit(self, categories: dict[str, Category]) -> None:
        comida = categories["comida"]
        snapshot = FinancialSnapshot(
            transactions=[_txn(5, "Compra", -10, comida)],
            categories=[comida],
            budgets=[Budget(category_id=str(comida.id), monthly_limit=0)],
        )
        (row,) = selectors.budget_progress(snapshot, 2024, 1)
        assert row.percentage == Decimal("0")
        assert row.status == BudgetStatus.OK

    def test_custom_thresholds(self, snapshot: FinancialSnapshot) -> None:
        progress = selectors.budget_progress(snapshot, 2024, 1, warn_at=Decimal(50), danger_at=Decimal(60))
        assert progress[0].status == BudgetStatus.DANGER
        assert progress[1].status == BudgetStatus.OK

    def test_budget_status(self, snapshot: FinancialSnapshot, categories: dict[str, Category]) -> None:
        assert selectors.budget_status(snapshot, str(categories["comida"].id), 2024, 1) == BudgetStatus.OK
        assert selectors.budget_status(snapshot, str(categories["ingresos"].id), 2024, 1) == BudgetStatus.OK
        assert selectors.budget_status(snapshot, str(categories["transporte"].id), 2024, 2) == BudgetStatus.DANGER


class TestCategorySelectors:
    def test_by_category(self, snapshot: FinancialSnapshot, categories: dict[str, Category]) -> None:
        comida_id = str(categories["comida"].id)
        assert len(selectors.transactions_by_category(snapshot, comida_id)) == 2
        transporte_id = str(categories["transporte"].id)
        assert len(selectors.transactions_by_category(snapshot, transporte_id)) == 2
        assert len(selectors.transactions_by_category(snapshot, transporte_id, 2024, 2)) == 1
        assert selectors.total_spent_by_category(snapshot, comida_id, 2024, 1) == Decimal("131.30")
        assert selectors.total_spent_by_category(snapshot, transporte_id) == Decimal("72.30")

    def test_budget_lookup(self, snapshot: FinancialSnapshot, categories: dict[str, Category]) -> None:
        budget = selectors.budget_by_category(snapshot, str(categories["comida"].id))
        assert budget is not None
        assert budget.monthly_limit.value == Decimal("200.00")
        assert selectors.budget_by_category(snapshot, str(categories["ingresos"].id)) is None

    def test_partition_by_budget(self, snapshot: FinancialSnapshot) -> None:
        assert [c.name for c in selectors.categories_with_budget(snapshot)] == ["Comida", "Transporte"]
        assert [c.name for c in selectors.categories_without_budget(snapshot)] == ["Ingresos"]

    def test_available_categories_sorted_without_mutation(self, snapshot: FinancialSnapshot) -> None:
        original = snapshot.categories
        names = [c.name for c in selectors.available_categories(snapshot)]
        assert names == ["Comida", "Ingresos", "Transporte"]
        assert snapshot.categories == original

    def test_selectors_are_pure(self, snapshot: FinancialSnapshot) -> None:
        first = selectors.budget_progress(snapshot, 2024, 1)
        second = selectors.budget_progress(snapshot, 2024, 1)
        assert first == second
        assert selectors.monthly_totals(snapshot, 2024, 1) == selectors.monthly_totals(snapshot, 2024, 1)
        assert selectors.top_spending_categories(snapshot, 2024, 1) == selectors.top_spending_categories(
            snapshot, 2024, 1
        )
