"""
Configuration Management for Budget Vault

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Cryptographic parameters (iteration counts, salt and IV sizes) are NOT
configuration. They live as constants in the security package because
changing them would orphan every stored verifier and ciphertext.
"""

import logging
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_CURRENCIES = ("INR", "USD", "EUR", "GBP")


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_VAULT_STORAGE_",
        extra="ignore"
    )

    backend: Literal["file", "memory"] = Field(
        default="file",
        description="Where the key-value store lives"
    )
    data_dir: Path = Field(
        default=Path.home() / ".budget_vault",
        description="Directory holding the local store file"
    )
    store_filename: str = Field(
        default="store.json",
        min_length=1,
        description="Name of the JSON file backing the store"
    )

    @property
    def store_path(self) -> Path:
        """Full path of the store file."""
        return self.data_dir / self.store_filename


class SecuritySettings(BaseSettings):
    """PIN lock and encryption-at-rest configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_VAULT_SECURITY_",
        extra="ignore"
    )

    encrypt_at_rest: bool = Field(
        default=True,
        description="Store budget data as encrypted payloads"
    )
    audit_buffer_size: int = Field(
        default=200,
        ge=10,
        le=1000,
        description="How many recent security events to keep in memory"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Standard library log level name"
    )

    # Budget defaults
    default_currency: str = Field(
        default="INR",
        description="Currency used until the user picks one"
    )
    default_monthly_budget: Decimal = Field(
        default=Decimal("30000"),
        ge=0,
        description="Monthly budget used for months without an explicit limit"
    )
    seed_demo_data: bool = Field(
        default=True,
        description="Populate demo categories and transactions on first run"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("default_currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        code = v.strip().upper()
        if code not in SUPPORTED_CURRENCIES:
            raise ValueError(
                f"Unsupported currency {v}; expected one of {', '.join(SUPPORTED_CURRENCIES)}"
            )
        return code


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def security(self) -> SecuritySettings:
        return SecuritySettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the failures.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "security", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
