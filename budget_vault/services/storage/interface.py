"""
Abstract Storage Interfaces

DESIGN DECISION: Two layers of storage, each behind an interface.

1. KeyValueStore - the device's flat string store (the shape of a
   browser's localStorage). Salts, the PIN verifier and encrypted
   payloads all live here. Synchronous, overwrite-on-write, no
   transactions.
2. BudgetStorageInterface - categories, transactions and monthly
   budgets. Async, so a remote backend can slot in later without
   touching callers.

Using interfaces lets tests run against an in-memory store.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from budget_vault.models.budget import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)


class KeyValueStore(ABC):
    """
    Flat string-to-string persistent store.

    Implementations raise StorageUnavailable when the backing medium
    cannot be read or written. That error is fatal to the caller.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, overwriting any previous one."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key. Removing an absent key is a no-op."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """All keys currently stored."""
        pass

    def clear(self) -> None:
        """Remove every key."""
        for key in self.keys():
            self.remove(key)


class BudgetStorageInterface(ABC):
    """
    Abstract interface for budget data.

    Any storage implementation (local store, REST backend, etc.)
    must implement these methods.
    """

    # --- Categories ---

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        pass

    @abstractmethod
    async def create_category(self, data: CategoryCreate) -> Category:
        pass

    @abstractmethod
    async def update_category(self, category_id: int, updates: CategoryUpdate) -> Category:
        """
        Update an existing category.

        Raises:
            NotFoundError: If the category doesn't exist
        """
        pass

    @abstractmethod
    async def delete_category(self, category_id: int) -> None:
        """
        Delete a category.

        Raises:
            NotFoundError: If the category doesn't exist
        """
        pass

    # --- Transactions ---

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        """All transactions, newest first."""
        pass

    @abstractmethod
    async def create_transaction(self, data: TransactionCreate) -> Transaction:
        pass

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: int,
        updates: TransactionUpdate,
    ) -> Transaction:
        """
        Update an existing transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: int) -> None:
        """
        Delete a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    # --- Monthly budgets & preferences ---

    @abstractmethod
    async def get_monthly_budget(self, year_month: str) -> Decimal:
        """
        Overall budget for a month (``YYYY-MM``).

        Months without an explicit budget return the configured default.
        """
        pass

    @abstractmethod
    async def set_monthly_budget(self, year_month: str, amount: Decimal) -> Decimal:
        pass

    @abstractmethod
    async def get_currency(self) -> str:
        pass

    @abstractmethod
    async def set_currency(self, code: str) -> None:
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageUnavailable(StorageError):
    """The persistent store cannot be read or written."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DataInaccessibleError(StorageError):
    """Encrypted data exists but cannot be decrypted with the session key."""
    pass
