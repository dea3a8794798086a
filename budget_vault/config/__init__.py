"""Configuration package."""

from budget_vault.config.settings import (
    SUPPORTED_CURRENCIES,
    AppSettings,
    SecuritySettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "SUPPORTED_CURRENCIES",
    "AppSettings",
    "SecuritySettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
