"""
Encrypted Export / Backup

Produces a self-contained encrypted export blob from the PIN-derived key,
and reads one back.

Google Drive (appDataFolder) upload and restore are placeholders: they
need an OAuth client integration that does not exist yet, so they
always raise BackupNotImplemented.
"""

import json
from typing import Any

from cryptography.exceptions import InvalidTag

from budget_vault.models.security import SecurePayload
from budget_vault.security.codec import open_sealed, seal
from budget_vault.security.errors import BackupNotImplemented, DecryptionFailed
from budget_vault.security.kdf import KeyDeriver


async def encrypt_export(payload: Any, pin: str, key_deriver: KeyDeriver) -> str:
    """
    Encrypt `payload` for export.

    Returns:
        JSON text ``{"iv": b64, "ciphertext": b64}``
    """
    key = await key_deriver.derive_key_from_pin(pin)
    return json.dumps(seal(payload, key).model_dump())


async def decrypt_import(exported: str, pin: str, key_deriver: KeyDeriver) -> Any:
    """
    Decrypt an export produced by `encrypt_export` on this install.

    Raises:
        DecryptionFailed: wrong PIN, tampered blob or malformed text
    """
    key = await key_deriver.derive_key_from_pin(pin)
    try:
        payload = SecurePayload.model_validate_json(exported)
        return open_sealed(payload, key)
    except (InvalidTag, ValueError) as e:
        raise DecryptionFailed("Export could not be decrypted") from e


async def upload_to_drive_appdata(encrypted_json: str, access_token: str) -> None:
    raise BackupNotImplemented(
        "Drive upload requires a Google OAuth client integration"
    )


async def restore_from_drive_appdata(access_token: str) -> str:
    raise BackupNotImplemented(
        "Drive restore requires a Google OAuth client integration"
    )
