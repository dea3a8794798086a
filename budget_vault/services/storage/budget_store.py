"""
Local Budget Storage

Implements BudgetStorageInterface on top of the device KeyValueStore.

Two modes:
- Plain: JSON lists under ``budget_app_*`` keys.
- Encrypted: categories, transactions and monthly budgets stored as
  secure payloads (``secure:categories`` etc.) under the session key.
  Currency and the "initialized" flag stay plain; they are preferences,
  not financial data.

DESIGN DECISION: In encrypted mode an undecryptable record raises
DataInaccessibleError instead of reading as empty. Reading it as empty
would let the next write silently replace the user's data.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import structlog
from pydantic import BaseModel, TypeAdapter

from budget_vault.models.budget import (
    CURRENCIES,
    Category,
    CategoryCreate,
    CategoryUpdate,
    Transaction,
    TransactionCreate,
    TransactionType,
    TransactionUpdate,
)
from budget_vault.security.codec import SecurePayloadCodec
from budget_vault.security.kdf import EncryptionKey
from budget_vault.services.storage.interface import (
    BudgetStorageInterface,
    DataInaccessibleError,
    KeyValueStore,
    NotFoundError,
)


logger = structlog.get_logger(__name__)

# Plain-mode keys
KEYS = {
    "categories": "budget_app_categories",
    "transactions": "budget_app_transactions",
    "monthly_budgets": "budget_app_monthly_budgets",
    "currency": "budget_app_currency",
    "initialized": "budget_app_initialized",
}

_categories_adapter = TypeAdapter(list[Category])
_transactions_adapter = TypeAdapter(list[Transaction])


DEFAULT_CATEGORIES = [
    Category(id=1, name="Groceries", type=TransactionType.EXPENSE,
             monthly_limit=Decimal("500"), color="#4ade80", icon="shopping-cart"),
    Category(id=2, name="Rent", type=TransactionType.EXPENSE,
             monthly_limit=Decimal("1500"), color="#f87171", icon="home"),
    Category(id=3, name="Salary", type=TransactionType.INCOME,
             monthly_limit=Decimal("0"), color="#60a5fa", icon="briefcase"),
    Category(id=4, name="Entertainment", type=TransactionType.EXPENSE,
             monthly_limit=Decimal("200"), color="#c084fc", icon="film"),
]

DEFAULT_TRANSACTIONS = [
    Transaction(id=1, category_id=3, amount=Decimal("4000"), date=datetime(2024, 3, 1),
                note="March Salary", type=TransactionType.INCOME),
    Transaction(id=2, category_id=2, amount=Decimal("1500"), date=datetime(2024, 3, 2),
                note="March Rent", type=TransactionType.EXPENSE),
    Transaction(id=3, category_id=1, amount=Decimal("120.50"), date=datetime(2024, 3, 5),
                note="Weekly groceries", type=TransactionType.EXPENSE),
]

DEFAULT_MONTHLY_BUDGETS = {"2024-03": "30000"}


def _check_currency(code: str) -> str:
    if code not in CURRENCIES:
        raise ValueError(f"Unsupported currency: {code}")
    return code


def _apply_update(model: BaseModel, updates: BaseModel) -> Any:
    changes = updates.model_dump(exclude_unset=True, exclude_none=True)
    return model.model_validate({**model.model_dump(), **changes})


class LocalBudgetStorage(BudgetStorageInterface):
    """
    Budget data in the device store.

    Pass both `codec` and `encryption_key` for encrypted mode.
    """

    def __init__(
        self,
        store: KeyValueStore,
        codec: Optional[SecurePayloadCodec] = None,
        encryption_key: Optional[EncryptionKey] = None,
        default_monthly_budget: Decimal = Decimal("30000"),
        default_currency: str = "INR",
    ):
        if (codec is None) != (encryption_key is None):
            raise ValueError("Encrypted mode needs both a codec and an encryption key")
        self._store = store
        self._codec = codec
        self._key = encryption_key
        self._default_monthly_budget = default_monthly_budget
        self._default_currency = default_currency

    @property
    def encrypted(self) -> bool:
        return self._codec is not None

    # =========================================================================
    # RAW RECORD ACCESS
    # =========================================================================

    async def _read(self, name: str) -> Optional[Any]:
        if self._codec is None:
            raw = self._store.get(KEYS[name])
            return json.loads(raw) if raw else None

        result = await self._codec.load_secure_result(name, self._key)
        if result is None:
            return None
        if not result.ok:
            raise DataInaccessibleError(f"Encrypted {name} cannot be decrypted")
        return result.data

    async def _write(self, name: str, value: Any) -> None:
        if self._codec is None:
            self._store.set(KEYS[name], json.dumps(value))
        else:
            await self._codec.save_secure(name, value, self._key)

    async def initialize(self, seed_demo_data: bool = True) -> bool:
        """
        Seed demo data on the first run of this store.

        Returns:
            True if data was seeded
        """
        if self._store.get(KEYS["initialized"]):
            return False

        if seed_demo_data:
            await self._save_categories(DEFAULT_CATEGORIES)
            await self._save_transactions(DEFAULT_TRANSACTIONS)
            await self._write("monthly_budgets", dict(DEFAULT_MONTHLY_BUDGETS))
        self._store.set(KEYS["currency"], self._default_currency)
        self._store.set(KEYS["initialized"], "true")
        logger.info("budget_store_initialized", seeded=seed_demo_data, encrypted=self.encrypted)
        return seed_demo_data

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    async def _save_categories(self, categories: list[Category]) -> None:
        await self._write("categories", _categories_adapter.dump_python(categories, mode="json"))

    async def list_categories(self) -> list[Category]:
        data = await self._read("categories")
        return _categories_adapter.validate_python(data or [])

    async def create_category(self, data: CategoryCreate) -> Category:
        categories = await self.list_categories()
        new_id = max((c.id for c in categories), default=0) + 1
        category = Category(id=new_id, **data.model_dump())
        await self._save_categories([*categories, category])
        return category

    async def update_category(self, category_id: int, updates: CategoryUpdate) -> Category:
        categories = await self.list_categories()
        for index, category in enumerate(categories):
            if category.id == category_id:
                updated = _apply_update(category, updates)
                categories[index] = updated
                await self._save_categories(categories)
                return updated
        raise NotFoundError(f"Category {category_id} not found")

    async def delete_category(self, category_id: int) -> None:
        categories = await self.list_categories()
        remaining = [c for c in categories if c.id != category_id]
        if len(remaining) == len(categories):
            raise NotFoundError(f"Category {category_id} not found")
        await self._save_categories(remaining)

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def _load_transactions(self) -> list[Transaction]:
        data = await self._read("transactions")
        return _transactions_adapter.validate_python(data or [])

    async def _save_transactions(self, transactions: list[Transaction]) -> None:
        await self._write(
            "transactions",
            _transactions_adapter.dump_python(transactions, mode="json"),
        )

    async def list_transactions(self) -> list[Transaction]:
        transactions = await self._load_transactions()
        return sorted(transactions, key=lambda t: t.date, reverse=True)

    async def create_transaction(self, data: TransactionCreate) -> Transaction:
        transactions = await self._load_transactions()
        new_id = max((t.id for t in transactions), default=0) + 1
        transaction = Transaction(id=new_id, **data.model_dump())
        await self._save_transactions([*transactions, transaction])
        return transaction

    async def update_transaction(
        self,
        transaction_id: int,
        updates: TransactionUpdate,
    ) -> Transaction:
        transactions = await self._load_transactions()
        for index, transaction in enumerate(transactions):
            if transaction.id == transaction_id:
                updated = _apply_update(transaction, updates)
                transactions[index] = updated
                await self._save_transactions(transactions)
                return updated
        raise NotFoundError(f"Transaction {transaction_id} not found")

    async def delete_transaction(self, transaction_id: int) -> None:
        transactions = await self._load_transactions()
        remaining = [t for t in transactions if t.id != transaction_id]
        if len(remaining) == len(transactions):
            raise NotFoundError(f"Transaction {transaction_id} not found")
        await self._save_transactions(remaining)

    # =========================================================================
    # MONTHLY BUDGETS & CURRENCY
    # =========================================================================

    async def get_monthly_budget(self, year_month: str) -> Decimal:
        budgets = await self._read("monthly_budgets") or {}
        value = budgets.get(year_month)
        return Decimal(value) if value is not None else self._default_monthly_budget

    async def set_monthly_budget(self, year_month: str, amount: Decimal) -> Decimal:
        if amount < 0:
            raise ValueError("Monthly budget cannot be negative")
        datetime.strptime(year_month, "%Y-%m")  # raises ValueError on bad format
        budgets = await self._read("monthly_budgets") or {}
        budgets[year_month] = str(amount)
        await self._write("monthly_budgets", budgets)
        return amount

    # =========================================================================
    # SNAPSHOTS (export / import)
    # =========================================================================

    async def export_snapshot(self) -> dict:
        """All budget data as one JSON-ready dict."""
        return {
            "categories": _categories_adapter.dump_python(
                await self.list_categories(), mode="json"
            ),
            "transactions": _transactions_adapter.dump_python(
                await self._load_transactions(), mode="json"
            ),
            "monthly_budgets": await self._read("monthly_budgets") or {},
            "currency": await self.get_currency(),
        }

    async def restore_snapshot(self, snapshot: dict) -> None:
        """
        Replace all budget data with a snapshot from `export_snapshot`.

        Everything is validated before anything is written.

        Raises:
            pydantic.ValidationError: snapshot is malformed
            ValueError: snapshot names an unsupported currency
        """
        currency = snapshot.get("currency")
        if currency:
            _check_currency(currency)
        categories = _categories_adapter.validate_python(snapshot.get("categories", []))
        transactions = _transactions_adapter.validate_python(snapshot.get("transactions", []))
        budgets = {
            str(month): str(Decimal(str(amount)))
            for month, amount in (snapshot.get("monthly_budgets") or {}).items()
        }

        await self._save_categories(categories)
        await self._save_transactions(transactions)
        await self._write("monthly_budgets", budgets)
        if currency:
            await self.set_currency(currency)
        self._store.set(KEYS["initialized"], "true")

    async def get_currency(self) -> str:
        return self._store.get(KEYS["currency"]) or self._default_currency

    async def set_currency(self, code: str) -> None:
        """Raises ValueError for codes with no entry in CURRENCIES."""
        self._store.set(KEYS["currency"], _check_currency(code))
