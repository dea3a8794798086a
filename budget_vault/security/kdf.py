"""
Key Derivation

Turns a PIN into an AES-256-GCM key:
PBKDF2-HMAC-SHA256, 150,000 iterations, master salt, 32-byte output.

DESIGN DECISION: The derived key is wrapped in EncryptionKey, which can
encrypt and decrypt but exposes no raw bytes, cannot be pickled and
cannot feed further derivations. It exists only in memory for an
unlocked session.

The PIN verifier pipeline (pin.py) uses different parameters and a
different salt. The two must stay independent.
"""

import asyncio
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from budget_vault.security.salt import SaltStore


KEY_ITERATIONS = 150_000
KEY_LENGTH = 32


def pbkdf2_sha256(secret: str, salt: bytes, iterations: int, length: int = 32) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(secret.encode("utf-8"))


class EncryptionKey:
    """Non-exportable AES-GCM key usable only for encrypt/decrypt."""

    __slots__ = ("_aead",)

    def __init__(self, raw: bytes):
        if len(raw) != KEY_LENGTH:
            raise ValueError(f"Expected a {KEY_LENGTH}-byte key, got {len(raw)}")
        self._aead = AESGCM(raw)

    def encrypt(self, iv: bytes, plaintext: bytes) -> bytes:
        """Ciphertext with the 16-byte GCM tag appended."""
        return self._aead.encrypt(iv, plaintext, None)

    def decrypt(self, iv: bytes, ciphertext: bytes) -> bytes:
        """
        Raises:
            cryptography.exceptions.InvalidTag: wrong key or tampered data
            ValueError: malformed IV
        """
        return self._aead.decrypt(iv, ciphertext, None)

    def __reduce__(self):
        raise TypeError("EncryptionKey cannot be serialized")

    def __repr__(self) -> str:
        return "<EncryptionKey AES-256-GCM>"


def derive_key(pin: str, salt: bytes) -> EncryptionKey:
    """Deterministic: the same (pin, salt) always yields the same key."""
    return EncryptionKey(pbkdf2_sha256(pin, salt, KEY_ITERATIONS, KEY_LENGTH))


class KeyDeriver:
    """Derives session keys, defaulting to the install's master salt."""

    def __init__(self, salt_store: SaltStore):
        self._salt_store = salt_store

    async def derive_key_from_pin(
        self,
        pin: str,
        salt: Optional[bytes] = None,
    ) -> EncryptionKey:
        """
        Derive an encryption key from a PIN.

        Args:
            pin: The PIN as entered (already verified by the caller)
            salt: Explicit salt; defaults to the master salt, which is
                created if absent
        """
        if salt is None:
            salt = self._salt_store.ensure_salt()
        return await asyncio.to_thread(derive_key, pin, salt)
