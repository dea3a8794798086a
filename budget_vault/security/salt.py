"""
Salt Store

One random salt per install, generated on first use and persisted
base64-encoded under ``secure:master_salt``. Every encryption key
derivation for the install uses it.

The PIN verifier has its own salt (``secure:pin_salt``), created with
the same ensure-once primitive but never shared with key derivation.
"""

import base64
import binascii
import os

import structlog

from budget_vault.services.storage.interface import KeyValueStore, StorageUnavailable


logger = structlog.get_logger(__name__)

STORAGE_PREFIX = "secure:"
MASTER_SALT_KEY = STORAGE_PREFIX + "master_salt"
SALT_LENGTH = 16


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(text: str) -> bytes:
    """Strict base64 decode. Raises binascii.Error on malformed input."""
    return base64.b64decode(text.encode("ascii"), validate=True)


def ensure_random_value(store: KeyValueStore, key: str, length: int) -> bytes:
    """
    Return the random bytes stored at `key`, creating them on first call.

    Idempotent: later calls return the identical value until the key is
    removed from the store.

    Raises:
        StorageUnavailable: store unreachable, or the stored value is
            not valid base64
    """
    existing = store.get(key)
    if existing:
        try:
            return b64decode(existing)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise StorageUnavailable(f"Stored value at {key} is corrupt") from e

    value = os.urandom(length)
    store.set(key, b64encode(value))
    logger.info("random_value_created", key=key, length=length)
    return value


class SaltStore:
    """Master salt for encryption key derivation."""

    def __init__(self, store: KeyValueStore, key: str = MASTER_SALT_KEY):
        self._store = store
        self._key = key

    def ensure_salt(self) -> bytes:
        return ensure_random_value(self._store, self._key, SALT_LENGTH)
