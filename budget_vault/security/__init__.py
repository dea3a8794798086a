"""
Security Package

Local credential and encryption subsystem: salt store, PIN
authenticator, key derivation, secure payload codec, lock controller
and encrypted export.
"""

from budget_vault.security.backup import (
    decrypt_import,
    encrypt_export,
    restore_from_drive_appdata,
    upload_to_drive_appdata,
)
from budget_vault.security.codec import SecurePayloadCodec
from budget_vault.security.errors import (
    AppLockedError,
    BackupNotImplemented,
    DecryptionFailed,
    InvalidPinFormat,
    SecurityError,
    VerificationFailed,
)
from budget_vault.security.kdf import EncryptionKey, KeyDeriver, derive_key
from budget_vault.security.lock import LockController, initial_state, next_state
from budget_vault.security.pin import PinAuthenticator, is_valid_pin
from budget_vault.security.salt import SaltStore, ensure_random_value

__all__ = [
    # Backup
    "decrypt_import",
    "encrypt_export",
    "restore_from_drive_appdata",
    "upload_to_drive_appdata",
    # Codec
    "SecurePayloadCodec",
    # Errors
    "AppLockedError",
    "BackupNotImplemented",
    "DecryptionFailed",
    "InvalidPinFormat",
    "SecurityError",
    "VerificationFailed",
    # Keys
    "EncryptionKey",
    "KeyDeriver",
    "derive_key",
    # Lock
    "LockController",
    "initial_state",
    "next_state",
    # PIN
    "PinAuthenticator",
    "is_valid_pin",
    # Salt
    "SaltStore",
    "ensure_random_value",
]
