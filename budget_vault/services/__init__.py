"""Services package."""

from budget_vault.services.storage import (
    BudgetStorageInterface,
    DataInaccessibleError,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    NotFoundError,
    StorageError,
    StorageUnavailable,
)

__all__ = [
    "BudgetStorageInterface",
    "DataInaccessibleError",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "NotFoundError",
    "StorageError",
    "StorageUnavailable",
]
