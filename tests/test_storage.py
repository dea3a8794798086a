"""
Tests for the key-value stores and local budget storage.
"""

import json
import os
from datetime import datetime
from decimal import Decimal

import pytest

from budget_vault.models.budget import (
    CategoryCreate,
    CategoryUpdate,
    TransactionCreate,
    TransactionType,
    TransactionUpdate,
)
from budget_vault.security import EncryptionKey
from budget_vault.services.storage import (
    DataInaccessibleError,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    NotFoundError,
    StorageUnavailable,
)
from budget_vault.services.storage.budget_store import KEYS, LocalBudgetStorage


class TestInMemoryStore:
    def test_basic_operations(self):
        store = InMemoryKeyValueStore({"a": "1"})
        store.set("b", "2")
        assert store.get("a") == "1"
        assert sorted(store.keys()) == ["a", "b"]
        store.remove("a")
        store.remove("missing")
        assert store.get("a") is None

    def test_unavailable(self):
        store = InMemoryKeyValueStore()
        store.unavailable = True
        with pytest.raises(StorageUnavailable):
            store.get("a")


class TestJsonFileStore:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        JsonFileKeyValueStore(path).set("secure:x", "value")
        assert JsonFileKeyValueStore(path).get("secure:x") == "value"
        assert json.loads(path.read_text()) == {"secure:x": "value"}

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path / "none.json")
        assert store.keys() == []
        assert store.get("anything") is None

    def test_remove_and_clear(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path / "store.json")
        store.set("a", "1")
        store.set("b", "2")
        store.remove("a")
        assert store.keys() == ["b"]
        store.clear()
        assert store.keys() == []

    def test_corrupt_file_is_unavailable(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json")
        with pytest.raises(StorageUnavailable):
            JsonFileKeyValueStore(path).get("a")

    def test_non_object_file_is_unavailable(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("[1, 2]")
        with pytest.raises(StorageUnavailable):
            JsonFileKeyValueStore(path).keys()

    def test_no_temp_files_left(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path / "store.json")
        store.set("a", "1")
        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]


@pytest.fixture(params=["plain", "encrypted"])
def budget_storage(request, store, codec):
    if request.param == "plain":
        return LocalBudgetStorage(store)
    return LocalBudgetStorage(store, codec, EncryptionKey(os.urandom(32)))


class TestLocalBudgetStorage:
    """Runs against both plain and encrypted modes."""

    @pytest.mark.asyncio
    async def test_initialize_seeds_once(self, budget_storage):
        assert await budget_storage.initialize() is True
        assert await budget_storage.initialize() is False
        assert len(await budget_storage.list_categories()) == 4
        assert len(await budget_storage.list_transactions()) == 3
        assert await budget_storage.get_monthly_budget("2024-03") == Decimal("30000")
        assert await budget_storage.get_currency() == "INR"

    @pytest.mark.asyncio
    async def test_initialize_without_seed(self, budget_storage):
        assert await budget_storage.initialize(seed_demo_data=False) is False
        assert await budget_storage.list_categories() == []

    @pytest.mark.asyncio
    async def test_category_crud(self, budget_storage):
        created = await budget_storage.create_category(
            CategoryCreate(name="  Travel ", monthly_limit=Decimal("250"))
        )
        assert created.id == 1
        assert created.name == "Travel"

        updated = await budget_storage.update_category(
            created.id, CategoryUpdate(monthly_limit=Decimal("300"))
        )
        assert updated.monthly_limit == Decimal("300")
        assert updated.name == "Travel"

        second = await budget_storage.create_category(CategoryCreate(name="Food"))
        assert second.id == 2

        await budget_storage.delete_category(created.id)
        assert [c.name for c in await budget_storage.list_categories()] == ["Food"]

    @pytest.mark.asyncio
    async def test_unknown_ids_raise(self, budget_storage):
        with pytest.raises(NotFoundError):
            await budget_storage.update_category(99, CategoryUpdate(name="x"))
        with pytest.raises(NotFoundError):
            await budget_storage.delete_category(99)
        with pytest.raises(NotFoundError):
            await budget_storage.update_transaction(99, TransactionUpdate(note="x"))
        with pytest.raises(NotFoundError):
            await budget_storage.delete_transaction(99)

    @pytest.mark.asyncio
    async def test_stale_ids_raise_after_delete(self, budget_storage):
        """A second delete or an edit of a deleted row is NotFoundError, not a crash."""
        await budget_storage.initialize()
        await budget_storage.delete_category(4)
        await budget_storage.delete_transaction(3)

        with pytest.raises(NotFoundError):
            await budget_storage.delete_category(4)
        with pytest.raises(NotFoundError):
            await budget_storage.update_category(4, CategoryUpdate(name="Films"))
        with pytest.raises(NotFoundError):
            await budget_storage.update_transaction(3, TransactionUpdate(amount=Decimal("1.00")))
        assert len(await budget_storage.list_categories()) == 3

    @pytest.mark.asyncio
    async def test_transactions_newest_first(self, budget_storage):
        for day in (5, 1, 20):
            await budget_storage.create_transaction(TransactionCreate(
                category_id=1,
                amount=Decimal("10.00"),
                date=datetime(2024, 3, day),
            ))
        dates = [t.date.day for t in await budget_storage.list_transactions()]
        assert dates == [20, 5, 1]

    @pytest.mark.asyncio
    async def test_transaction_update_keeps_exact_amounts(self, budget_storage):
        created = await budget_storage.create_transaction(TransactionCreate(
            category_id=1,
            amount=Decimal("120.50"),
            type=TransactionType.EXPENSE,
        ))
        updated = await budget_storage.update_transaction(
            created.id, TransactionUpdate(amount=Decimal("99.99"), note="fixed")
        )
        assert updated.amount == Decimal("99.99")
        stored = (await budget_storage.list_transactions())[0]
        assert stored.amount == Decimal("99.99")
        assert stored.note == "fixed"

    @pytest.mark.asyncio
    async def test_monthly_budget(self, budget_storage):
        assert await budget_storage.get_monthly_budget("2025-01") == Decimal("30000")
        await budget_storage.set_monthly_budget("2025-01", Decimal("12000"))
        assert await budget_storage.get_monthly_budget("2025-01") == Decimal("12000")

    @pytest.mark.asyncio
    async def test_monthly_budget_validation(self, budget_storage):
        with pytest.raises(ValueError):
            await budget_storage.set_monthly_budget("2025-01", Decimal("-1"))
        with pytest.raises(ValueError):
            await budget_storage.set_monthly_budget("January", Decimal("1"))

    @pytest.mark.asyncio
    async def test_unknown_currency_rejected(self, budget_storage):
        await budget_storage.initialize()
        with pytest.raises(ValueError):
            await budget_storage.set_currency("XYZ")
        assert await budget_storage.get_currency() == "INR"

    @pytest.mark.asyncio
    async def test_snapshot_with_unknown_currency_changes_nothing(self, budget_storage):
        await budget_storage.initialize()
        snapshot = await budget_storage.export_snapshot()
        snapshot["currency"] = "XYZ"
        snapshot["categories"] = []

        with pytest.raises(ValueError):
            await budget_storage.restore_snapshot(snapshot)
        assert len(await budget_storage.list_categories()) == 4
        assert await budget_storage.get_currency() == "INR"

    @pytest.mark.asyncio
    async def test_snapshot_round_trip(self, budget_storage):
        await budget_storage.initialize()
        await budget_storage.set_currency("EUR")
        snapshot = await budget_storage.export_snapshot()

        fresh = LocalBudgetStorage(InMemoryKeyValueStore())
        await fresh.restore_snapshot(snapshot)
        assert await fresh.list_categories() == await budget_storage.list_categories()
        assert await fresh.list_transactions() == await budget_storage.list_transactions()
        assert await fresh.get_currency() == "EUR"
        assert await fresh.initialize() is False


class TestEncryptedBudgetStorage:
    """Behaviour specific to encrypted mode."""

    @pytest.mark.asyncio
    async def test_no_plaintext_in_store(self, store, codec):
        storage = LocalBudgetStorage(store, codec, EncryptionKey(os.urandom(32)))
        await storage.initialize()
        assert store.get(KEYS["categories"]) is None
        dump = json.dumps({k: store.get(k) for k in store.keys()})
        assert "Groceries" not in dump
        assert "March Salary" not in dump

    @pytest.mark.asyncio
    async def test_wrong_key_is_inaccessible_not_empty(self, store, codec):
        storage = LocalBudgetStorage(store, codec, EncryptionKey(os.urandom(32)))
        await storage.initialize()

        other = LocalBudgetStorage(store, codec, EncryptionKey(os.urandom(32)))
        with pytest.raises(DataInaccessibleError):
            await other.list_categories()
        with pytest.raises(DataInaccessibleError):
            await other.create_category(CategoryCreate(name="Overwrite"))

    def test_codec_and_key_required_together(self, store, codec):
        with pytest.raises(ValueError):
            LocalBudgetStorage(store, codec=codec)
