"""
Storage Services Package

Abstract interfaces and local implementations. The budget storage
implementation lives in `budget_store` and is imported from there
directly, since it depends on the security package.
"""

from budget_vault.services.storage.interface import (
    BudgetStorageInterface,
    DataInaccessibleError,
    KeyValueStore,
    NotFoundError,
    StorageError,
    StorageUnavailable,
)
from budget_vault.services.storage.local import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
)

__all__ = [
    # Interfaces
    "BudgetStorageInterface",
    "KeyValueStore",
    # Exceptions
    "DataInaccessibleError",
    "NotFoundError",
    "StorageError",
    "StorageUnavailable",
    # Local implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
]
