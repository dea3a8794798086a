"""
PIN Authenticator

Stores a verifier for a 4-6 digit PIN, never the PIN itself:
PBKDF2-HMAC-SHA256, 200,000 iterations, 256-bit digest, over a
PIN-specific salt.

Storage:
    secure:pin_hash  base64 digest
    secure:pin_salt  base64 of 16 random bytes (not the master salt)

verify_pin fails closed: missing or unreadable verifier data means
False, never an exception. Storage outages still propagate.
"""

import asyncio
import binascii
import hmac
import re

import structlog

from budget_vault.security.errors import InvalidPinFormat
from budget_vault.security.kdf import pbkdf2_sha256
from budget_vault.security.salt import (
    SALT_LENGTH,
    STORAGE_PREFIX,
    b64decode,
    b64encode,
    ensure_random_value,
)
from budget_vault.services.storage.interface import KeyValueStore


logger = structlog.get_logger(__name__)

PIN_HASH_KEY = STORAGE_PREFIX + "pin_hash"
PIN_SALT_KEY = STORAGE_PREFIX + "pin_salt"
PIN_ITERATIONS = 200_000
PIN_DIGEST_LENGTH = 32

_PIN_PATTERN = re.compile(r"[0-9]{4,6}")


def is_valid_pin(pin: object) -> bool:
    return isinstance(pin, str) and _PIN_PATTERN.fullmatch(pin) is not None


def _pin_digest(pin: str, salt: bytes) -> str:
    return b64encode(pbkdf2_sha256(pin, salt, PIN_ITERATIONS, PIN_DIGEST_LENGTH))


class PinAuthenticator:
    """Creates, checks and clears the PIN verifier."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    async def set_pin(self, pin: str) -> None:
        """
        Create or overwrite the PIN verifier.

        Raises:
            InvalidPinFormat: PIN is not 4-6 digits (nothing is written)
        """
        if not is_valid_pin(pin):
            raise InvalidPinFormat("PIN must be 4-6 digits")

        salt = ensure_random_value(self._store, PIN_SALT_KEY, SALT_LENGTH)
        digest = await asyncio.to_thread(_pin_digest, pin, salt)
        self._store.set(PIN_HASH_KEY, digest)
        logger.info("pin_set")

    def has_pin(self) -> bool:
        return bool(self._store.get(PIN_HASH_KEY))

    async def verify_pin(self, pin: str) -> bool:
        stored = self._store.get(PIN_HASH_KEY)
        if not stored:
            return False
        salt_text = self._store.get(PIN_SALT_KEY)
        if not salt_text:
            return False
        try:
            salt = b64decode(salt_text)
        except (binascii.Error, UnicodeEncodeError):
            logger.warning("pin_salt_corrupt")
            return False

        # A malformed PIN can never have been stored
        if not is_valid_pin(pin):
            return False

        candidate = await asyncio.to_thread(_pin_digest, pin, salt)
        return hmac.compare_digest(candidate.encode("ascii"), stored.encode("utf-8"))

    def clear_pin(self) -> None:
        self._store.remove(PIN_HASH_KEY)
        self._store.remove(PIN_SALT_KEY)
        logger.info("pin_cleared")
