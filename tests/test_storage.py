"""Tests for the JSON repositories and demo seeding."""

import json
import os
from decimal import Decimal
from pathlib import Path

import pytest

from veedor.errors import DuplicateTransaction, NotFoundError, StorageError, UniquenessViolation
from veedor.models.financial import Budget, Category, Theme, Transaction, UserSettings
from veedor.models.values import CalendarDate
from veedor.storage.json_store import JSONWorkspace
from veedor.storage.seed import generate_categories, generate_transactions, seed_if_empty


def _txn(description: str = "Compra", amount: float = -45.5, day: int = 15, **extra) -> Transaction:
    return Transaction(date=CalendarDate.of(2024, 1, day), description=description, amount=amount, **extra)


@pytest.fixture
def workspace() -> JSONWorkspace:
    return JSONWorkspace.open(None)


class TestTransactionRepository:
    @pytest.mark.asyncio
    async def test_add_and_find(self, workspace: JSONWorkspace) -> None:
        txn = _txn(category_id="comida", account_id="cuenta-1")
        await workspace.transactions.add(txn)

        assert await workspace.transactions.find(txn.id) == txn
        assert await workspace.transactions.find("missing") is None
        assert await workspace.transactions.find_by_category("comida") == [txn]
        assert await workspace.transactions.find_by_account("cuenta-1") == [txn]
        assert await workspace.transactions.find_by_month(2024, 1) == [txn]
        assert await workspace.transactions.find_by_month(2024, 2) == []

    @pytest.mark.asyncio
    async def test_date_range(self, workspace: JSONWorkspace) -> None:
        for day in (1, 15, 31):
            await workspace.transactions.add(_txn(f"Compra {day}", day=day))
        found = await workspace.transactions.find_by_date_range(
            CalendarDate.of(2024, 1, 1), CalendarDate.of(2024, 1, 15)
        )
        assert [t.date.day for t in found] == [1, 15]

    @pytest.mark.asyncio
    async def test_content_duplicate_rejected(self, workspace: JSONWorkspace) -> None:
        await workspace.transactions.add(_txn())
        with pytest.raises(DuplicateTransaction):
            await workspace.transactions.add(_txn(" COMPRA "))
        assert len(await workspace.transactions.find_all()) == 1

    @pytest.mark.asyncio
    async def test_update(self, workspace: JSONWorkspace) -> None:
        txn = _txn()
        await workspace.transactions.add(txn)
        updated = await workspace.transactions.update(txn.id, description="Compra grande", amount=-90)
        assert updated.id == txn.id
        stored = await workspace.transactions.find(txn.id)
        assert stored.description == "Compra grande"
        assert stored.amount.value == Decimal("-90.00")

    @pytest.mark.asyncio
    async def test_update_cannot_create_duplicate(self, workspace: JSONWorkspace) -> None:
        first, second = _txn("Uno"), _txn("Dos")
        await workspace.transactions.add(first)
        await workspace.transactions.add(second)
        with pytest.raises(DuplicateTransaction):
            await workspace.transactions.update(second.id, description="uno")

    @pytest.mark.asyncio
    async def test_missing_ids(self, workspace: JSONWorkspace) -> None:
        with pytest.raises(NotFoundError):
            await workspace.transactions.update("missing", description="x")
        with pytest.raises(NotFoundError):
            await workspace.transactions.remove("missing")

    @pytest.mark.asyncio
    async def test_remove(self, workspace: JSONWorkspace) -> None:
        txn = _txn()
        await workspace.transactions.add(txn)
        await workspace.transactions.remove(txn.id)
        assert await workspace.transactions.find_all() == []

    @pytest.mark.asyncio
    async def test_import_many_dedupes(self, workspace: JSONWorkspace) -> None:
        await workspace.transactions.add(_txn())
        outcome = await workspace.transactions.import_many([_txn(), _txn("Otra"), _txn("otra")])
        assert outcome.imported == 1
        assert outcome.duplicates == 2
        assert len(await workspace.transactions.find_all()) == 2

    @pytest.mark.asyncio
    async def test_import_many_without_dedupe(self, workspace: JSONWorkspace) -> None:
        await workspace.transactions.add(_txn())
        outcome = await workspace.transactions.import_many([_txn()], dedupe=False)
        assert outcome.imported == 1
        assert outcome.duplicates == 1
        assert len(await workspace.transactions.find_all()) == 2

    @pytest.mark.asyncio
    async def test_totals(self, workspace: JSONWorkspace) -> None:
        await workspace.transactions.import_many(
            [
                _txn("Sueldo", 2500, day=1),
                _txn("Compra", -85.5, day=2, category_id="comida"),
                _txn("Cena", -45.8, day=20, category_id="comida"),
                _txn("Devolución", 10, day=21, category_id="comida"),
            ]
        )
        total = await workspace.transactions.total_by_category("comida")
        assert total.value == Decimal("-121.30")
        ranged = await workspace.transactions.total_by_category(
            "comida", CalendarDate.of(2024, 1, 1), CalendarDate.of(2024, 1, 10)
        )
        assert ranged.value == Decimal("-85.50")

        totals = await workspace.transactions.total_by_month(2024, 1)
        assert totals.income == Decimal("2510.00")
        assert totals.expenses == Decimal("131.30")
        assert totals.savings == Decimal("2378.70")


class TestCategoryRepository:
    @pytest.mark.asyncio
    async def test_slug_lookup(self, workspace: JSONWorkspace) -> None:
        category = Category(name="Comida Rápida", color_hex="#FF6B6B")
        await workspace.categories.add(category)
        assert await workspace.categories.find_by_slug("comida-rapida") == category
        assert await workspace.categories.exists(category.id)
        assert await workspace.categories.exists_by_slug("comida-rapida")
        assert not await workspace.categories.exists_by_slug("ocio")

    @pytest.mark.asyncio
    async def test_slug_must_be_unique(self, workspace: JSONWorkspace) -> None:
        await workspace.categories.add(Category(name="Ocio", color_hex="#FF6B6B"))
        with pytest.raises(UniquenessViolation):
            await workspace.categories.add(Category(name="OCIO", color_hex="#4ECDC4"))

    @pytest.mark.asyncio
    async def test_update_slug_collision(self, workspace: JSONWorkspace) -> None:
        ocio = Category(name="Ocio", color_hex="#FF6B6B")
        salud = Category(name="Salud", color_hex="#4ECDC4")
        await workspace.categories.add(ocio)
        await workspace.categories.add(salud)
        with pytest.raises(UniquenessViolation):
            await workspace.categories.update(salud.id, slug="ocio")
        renamed = await workspace.categories.update(salud.id, name="Farmacia", color_hex="#98d8c8")
        assert renamed.slug == "salud"
        assert renamed.color_hex == "#98D8C8"

    @pytest.mark.asyncio
    async def test_remove_missing(self, workspace: JSONWorkspace) -> None:
        with pytest.raises(NotFoundError):
            await workspace.categories.remove("missing")


class TestBudgetRepository:
    @pytest.mark.asyncio
    async def test_one_budget_per_category(self, workspace: JSONWorkspace) -> None:
        budget = Budget(category_id="comida", monthly_limit=300)
        await workspace.budgets.add(budget)
        assert await workspace.budgets.find_by_category("comida") == budget
        assert await workspace.budgets.find_by_category("ocio") is None
        assert await workspace.budgets.exists_by_category("comida")
        with pytest.raises(UniquenessViolation):
            await workspace.budgets.add(Budget(category_id="comida", monthly_limit=100))

    @pytest.mark.asyncio
    async def test_update_limit(self, workspace: JSONWorkspace) -> None:
        budget = Budget(category_id="comida", monthly_limit=300)
        await workspace.budgets.add(budget)
        updated = await workspace.budgets.update(budget.id, monthly_limit=350)
        assert updated.monthly_limit.value == Decimal("350.00")
        assert (await workspace.budgets.find(budget.id)).monthly_limit.value == Decimal("350.00")

    @pytest.mark.asyncio
    async def test_remove(self, workspace: JSONWorkspace) -> None:
        budget = Budget(category_id="comida", monthly_limit=300)
        await workspace.budgets.add(budget)
        await workspace.budgets.remove(budget.id)
        assert not await workspace.budgets.exists(budget.id)


class TestSettingsRepository:
    @pytest.mark.asyncio
    async def test_defaults_update_and_reset(self, workspace: JSONWorkspace) -> None:
        assert (await workspace.settings.get()).theme == Theme.DARK
        updated = await workspace.settings.update(theme="light")
        assert updated.is_light_theme
        assert (await workspace.settings.get()).is_light_theme
        assert (await workspace.settings.reset()).is_dark_theme
        assert (await workspace.settings.get()).is_dark_theme

    @pytest.mark.asyncio
    async def test_custom_defaults(self) -> None:
        workspace = JSONWorkspace.open(None, defaults=UserSettings(theme="light"))
        assert (await workspace.settings.get()).is_light_theme


class TestPersistence:
    @pytest.mark.asyncio
    async def test_round_trip_through_file(self, tmp_path: Path) -> None:
        data_file = tmp_path / "veedor.json"
        workspace = JSONWorkspace.open(data_file)
        category = Category(name="Comida", color_hex="#4ECDC4")
        txn = _txn("Cena", category_id=str(category.id), merchant="Bar Pepe")
        await workspace.categories.add(category)
        await workspace.transactions.add(txn)
        await workspace.settings.update(theme="light")

        document = json.loads(data_file.read_text(encoding="utf-8"))
        assert set(document) == {"transactions", "categories", "budgets", "settings"}
        assert document["transactions"][0]["date"] == "2024-01-15"

        reopened = JSONWorkspace.open(data_file)
        assert await reopened.transactions.find(txn.id) == txn
        assert await reopened.categories.find_by_slug("comida") == category
        assert (await reopened.settings.get()).is_light_theme
        with pytest.raises(DuplicateTransaction):
            await reopened.transactions.add(_txn("cena"))

    @pytest.mark.asyncio
    async def test_corrupt_file(self, tmp_path: Path) -> None:
        data_file = tmp_path / "veedor.json"
        data_file.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            await JSONWorkspace.open(data_file).transactions.find_all()

    @pytest.mark.asyncio
    async def test_non_object_file(self, tmp_path: Path) -> None:
        data_file = tmp_path / "veedor.json"
        data_file.write_text("[]", encoding="utf-8")
        with pytest.raises(StorageError):
            await JSONWorkspace.open(data_file).categories.find_all()

    @pytest.mark.asyncio
    async def test_failed_write_keeps_memory_and_disk(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        data_file = tmp_path / "veedor.json"
        workspace = JSONWorkspace.open(data_file)
        await workspace.categories.add(Category(name="Comida", color_hex="#4ECDC4"))
        before = data_file.read_text(encoding="utf-8")

        def fail_replace(src: object, dst: object) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", fail_replace)
        with pytest.raises(StorageError):
            await workspace.categories.add(Category(name="Ocio", color_hex="#FFEAA7"))
        with pytest.raises(StorageError):
            await workspace.settings.update(theme="light")

        assert [c.name for c in await workspace.categories.find_all()] == ["Comida"]
        assert (await workspace.settings.get()).is_dark_theme
        assert data_file.read_text(encoding="utf-8") == before
        assert not (tmp_path / "veedor.json.tmp").exists()

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        workspace = JSONWorkspace.open(tmp_path / "nested" / "veedor.json")
        assert workspace.store.is_empty()
        snapshot = await workspace.snapshot()
        assert snapshot.transactions == ()


class TestSeed:
    @pytest.mark.asyncio
    async def test_seed_if_empty(self, workspace: JSONWorkspace) -> None:
        reference = CalendarDate.of(2024, 2, 10)
        summary = await seed_if_empty(
            workspace.transactions, workspace.categories, workspace.budgets, reference
        )
        assert summary.categories == 8
        assert summary.transactions == 14
        assert summary.budgets == 6

        snapshot = await workspace.snapshot()
        assert len(snapshot.categories) == 8
        assert len(snapshot.transactions) == 14
        assert len(snapshot.budgets) == 6
        assert all(t.is_in_month(2024, 2) for t in snapshot.transactions)
        assert max(t.date.day for t in snapshot.transactions) == 29

        again = await seed_if_empty(workspace.transactions, workspace.categories, workspace.budgets, reference)
        assert again.categories == 0
        assert len(await workspace.categories.find_all()) == 8

    def test_generated_transactions_reference_categories(self) -> None:
        categories = generate_categories()
        ids = {str(c.id) for c in categories}
        transactions = generate_transactions(categories, CalendarDate.of(2024, 4, 1))
        assert all(t.category_id in ids for t in transactions)
        assert max(t.date.day for t in transactions) == 30
