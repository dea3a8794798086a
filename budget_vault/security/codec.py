"""
Secure Payload Codec

Encrypts JSON-serializable data with a session EncryptionKey and stores
it under ``secure:<name>`` as ``{"iv": b64, "ciphertext": b64}``.

CRITICAL: Every save draws a fresh random 12-byte IV. AES-GCM breaks
badly under IV reuse with the same key.

Decrypt failures are soft. `load_secure_result` returns a typed
DecryptFailed; `load_secure` turns that into None. Callers cannot tell
"inaccessible" from "absent" through `load_secure`, by contract.
"""

import json
import os
from typing import Any, Optional

import structlog
from cryptography.exceptions import InvalidTag

from budget_vault.audit.logger import AuditLogger
from budget_vault.models.audit import AuditEventBuilder
from budget_vault.models.security import DecryptFailed, Decrypted, DecryptResult, SecurePayload
from budget_vault.security.kdf import EncryptionKey
from budget_vault.security.pin import PIN_HASH_KEY, PIN_SALT_KEY
from budget_vault.security.salt import MASTER_SALT_KEY, STORAGE_PREFIX, b64decode, b64encode
from budget_vault.services.storage.interface import KeyValueStore


logger = structlog.get_logger(__name__)

IV_LENGTH = 12

RESERVED_KEYS = frozenset({MASTER_SALT_KEY, PIN_HASH_KEY, PIN_SALT_KEY})


def encode_json(data: Any) -> bytes:
    """Compact JSON text, UTF-8. Non-string dict keys become strings."""
    return json.dumps(
        data,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def is_record_name(name: str) -> bool:
    """False for the empty name and for names that map onto salts or the PIN verifier."""
    return bool(name) and STORAGE_PREFIX + name not in RESERVED_KEYS


def seal(data: Any, key: EncryptionKey) -> SecurePayload:
    """Encrypt `data` under a fresh random IV."""
    iv = os.urandom(IV_LENGTH)
    ciphertext = key.encrypt(iv, encode_json(data))
    return SecurePayload(iv=b64encode(iv), ciphertext=b64encode(ciphertext))


def open_sealed(payload: SecurePayload, key: EncryptionKey) -> Any:
    """
    Inverse of `seal`.

    Raises:
        InvalidTag: wrong key or tampered ciphertext
        ValueError: malformed base64, IV or JSON
    """
    iv = b64decode(payload.iv)
    plaintext = key.decrypt(iv, b64decode(payload.ciphertext))
    return json.loads(plaintext.decode("utf-8"))


class SecurePayloadCodec:
    """Encrypted records in the device store."""

    def __init__(self, store: KeyValueStore, audit_logger: Optional[AuditLogger] = None):
        self._store = store
        self._audit_logger = audit_logger

    @staticmethod
    def storage_key(name: str) -> str:
        """
        Namespaced key for a record name.

        Raises:
            ValueError: empty name, or a name that would overwrite the
                salts or the PIN verifier
        """
        if not name:
            raise ValueError("Secure record name must not be empty")
        if not is_record_name(name):
            raise ValueError(f"'{name}' is reserved")
        return STORAGE_PREFIX + name

    async def save_secure(self, name: str, data: Any, encryption_key: EncryptionKey) -> None:
        """
        Encrypt and store `data`, overwriting any record of the same name.

        Raises:
            TypeError: data is not JSON-serializable
        """
        storage_key = self.storage_key(name)
        payload = seal(data, encryption_key)
        self._store.set(storage_key, payload.model_dump_json())
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.secure_payload_saved(name))

    async def load_secure_result(
        self,
        name: str,
        encryption_key: EncryptionKey,
    ) -> Optional[DecryptResult]:
        """
        Load and decrypt a record.

        Returns:
            None if nothing is stored under `name` (reserved and empty
            names never hold a record), otherwise Decrypted or DecryptFailed
        """
        if not is_record_name(name):
            return None
        raw = self._store.get(self.storage_key(name))
        if not raw:
            return None

        try:
            payload = SecurePayload.model_validate_json(raw)
            data = open_sealed(payload, encryption_key)
        except (InvalidTag, ValueError) as e:
            reason = type(e).__name__
            logger.error("secure_payload_decrypt_failed", name=name, reason=reason)
            if self._audit_logger:
                self._audit_logger.log(
                    AuditEventBuilder.secure_payload_decrypt_failed(name, reason)
                )
            return DecryptFailed(reason=reason)

        return Decrypted(data=data)

    async def load_secure(self, name: str, encryption_key: EncryptionKey) -> Optional[Any]:
        """Decrypted data, or None when absent or inaccessible."""
        result = await self.load_secure_result(name, encryption_key)
        if result is None or not result.ok:
            return None
        return result.data

    def clear_secure(self) -> int:
        """
        Remove every key under the ``secure:`` namespace.

        This includes the master salt, the PIN verifier and the PIN salt,
        so afterwards the install is back in its first-run state.

        Returns:
            Number of keys removed
        """
        to_remove = [k for k in self._store.keys() if k.startswith(STORAGE_PREFIX)]
        for key in to_remove:
            self._store.remove(key)

        logger.warning("secure_data_cleared", removed=len(to_remove))
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.secure_data_wiped(len(to_remove)))
        return len(to_remove)
