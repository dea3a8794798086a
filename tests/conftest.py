"""Shared fixtures. Everything runs against an in-memory store."""

import os

import pytest

from budget_vault.audit import AuditLogger
from budget_vault.config import AppSettings, Settings
from budget_vault.security import (
    EncryptionKey,
    KeyDeriver,
    LockController,
    PinAuthenticator,
    SaltStore,
    SecurePayloadCodec,
)
from budget_vault.services.storage import InMemoryKeyValueStore


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def audit_logger():
    return AuditLogger(buffer_size=50)


@pytest.fixture
def salt_store(store):
    return SaltStore(store)


@pytest.fixture
def authenticator(store):
    return PinAuthenticator(store)


@pytest.fixture
def key_deriver(salt_store):
    return KeyDeriver(salt_store)


@pytest.fixture
def codec(store, audit_logger):
    return SecurePayloadCodec(store, audit_logger)


@pytest.fixture
def random_key():
    """A key that skips PBKDF2, for codec tests that don't need a PIN."""
    return EncryptionKey(os.urandom(32))


@pytest.fixture
def lock_controller(authenticator, key_deriver, audit_logger):
    return LockController(authenticator, key_deriver, audit_logger)


@pytest.fixture
def settings(monkeypatch, tmp_path):
    """Settings isolated from the developer's environment and .env file."""
    for name in list(os.environ):
        if name.startswith("BUDGET_VAULT_") or name.lower() in AppSettings.model_fields:
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BUDGET_VAULT_STORAGE_BACKEND", "memory")
    return Settings()
