"""
Main Orchestrator for Budget Vault

This module ties the components together and defines the flows for:
1. Onboarding (create PIN -> unlock)
2. Unlock / lock (PIN -> verify -> derive session key)
3. Wipe (remove all local data, back to first run)
4. Export / import (PIN-encrypted snapshot)

DESIGN DECISION: There is no module-level state. `create_app_context`
builds one AppContext at startup that owns the store, the lock state
and the session key, and the UI holds a reference to it. Tests build
their own with an in-memory store.

Format and verification errors are turned into UnlockResult messages
here, at the boundary. Storage errors propagate.
"""

from typing import Optional

import structlog

from budget_vault.audit import AuditLogger, configure_logging
from budget_vault.config import Settings, get_settings
from budget_vault.insights import InsightsCalculator
from budget_vault.models.audit import AuditEventBuilder
from budget_vault.models.security import LifecycleSignal, LockState, UnlockResult
from budget_vault.security import (
    AppLockedError,
    BackupNotImplemented,
    DecryptionFailed,
    InvalidPinFormat,
    KeyDeriver,
    LockController,
    PinAuthenticator,
    SaltStore,
    SecurePayloadCodec,
    VerificationFailed,
    decrypt_import,
    encrypt_export,
    restore_from_drive_appdata,
    upload_to_drive_appdata,
)
from budget_vault.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)
from budget_vault.services.storage.budget_store import KEYS, LocalBudgetStorage


logger = structlog.get_logger(__name__)

MSG_BAD_FORMAT = "PIN must be 4–6 digits"
MSG_INCORRECT = "Incorrect PIN"
MSG_PIN_EXISTS = "A PIN is already set"
MSG_RELOCKED = "App locked again, please re-enter your PIN"


class AppContext:
    """
    Everything one running app needs, constructed once.

    Owns storage access, the lock controller and (through it) the
    session key.
    """

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self._app_settings = settings.app
        self._security_settings = settings.security

        self.store = store
        self.audit_logger = AuditLogger(self._security_settings.audit_buffer_size)
        self.salt_store = SaltStore(store)
        self.pin_authenticator = PinAuthenticator(store)
        self.key_deriver = KeyDeriver(self.salt_store)
        self.codec = SecurePayloadCodec(store, self.audit_logger)
        self.lock_controller = LockController(
            self.pin_authenticator,
            self.key_deriver,
            self.audit_logger,
        )
        self.security = SecurityFlow(self)

    @property
    def encrypt_at_rest(self) -> bool:
        return self._security_settings.encrypt_at_rest

    def budget_storage(self) -> LocalBudgetStorage:
        """
        Budget storage bound to the current session.

        Raises:
            AppLockedError: app is locked, or encryption at rest is on
                and no PIN has been set up yet
        """
        if self.lock_controller.is_locked:
            raise AppLockedError("Unlock the app first")

        defaults = {
            "default_monthly_budget": self._app_settings.default_monthly_budget,
            "default_currency": self._app_settings.default_currency,
        }
        if not self.encrypt_at_rest:
            return LocalBudgetStorage(self.store, **defaults)

        key = self.lock_controller.session_key
        if key is None:
            raise AppLockedError("Set up a PIN to enable encrypted storage")
        return LocalBudgetStorage(self.store, self.codec, key, **defaults)

    async def open_budget_storage(self) -> LocalBudgetStorage:
        """`budget_storage()`, seeded on first use."""
        storage = self.budget_storage()
        await storage.initialize(seed_demo_data=self._app_settings.seed_demo_data)
        return storage

    def insights(self) -> InsightsCalculator:
        return InsightsCalculator(self.budget_storage())


class SecurityFlow:
    """
    PIN onboarding, unlock, lock, wipe and export.

    Methods return UnlockResult for the cases the UI shows as messages.
    """

    def __init__(self, context: AppContext):
        self._ctx = context

    @property
    def state(self) -> LockState:
        return self._ctx.lock_controller.state

    def has_pin(self) -> bool:
        return self._ctx.pin_authenticator.has_pin()

    async def onboard(self, pin: str) -> UnlockResult:
        """Create the first PIN and unlock with it."""
        if self.has_pin():
            return UnlockResult(success=False, message=MSG_PIN_EXISTS)

        try:
            await self._ctx.pin_authenticator.set_pin(pin)
        except InvalidPinFormat:
            self._ctx.audit_logger.log(AuditEventBuilder.pin_format_rejected(len(pin or "")))
            return UnlockResult(success=False, message=MSG_BAD_FORMAT)

        self._ctx.audit_logger.log(AuditEventBuilder.pin_created())
        return await self.unlock(pin)

    async def unlock(self, pin: str) -> UnlockResult:
        try:
            await self._ctx.lock_controller.unlock(pin)
        except InvalidPinFormat:
            self._ctx.audit_logger.log(AuditEventBuilder.pin_format_rejected(len(pin or "")))
            return UnlockResult(success=False, message=MSG_BAD_FORMAT)
        except VerificationFailed:
            return UnlockResult(success=False, message=MSG_INCORRECT)
        except AppLockedError:
            return UnlockResult(success=False, message=MSG_RELOCKED)

        await self._ctx.open_budget_storage()
        return UnlockResult(success=True)

    def lock(self) -> None:
        self._ctx.lock_controller.lock()

    def handle_signal(self, signal: LifecycleSignal) -> LockState:
        return self._ctx.lock_controller.handle_signal(signal)

    def reset(self) -> int:
        """
        Wipe all local data: encrypted records, salts, PIN verifier and
        any plain budget data. The app returns to its first-run state.

        Returns:
            Number of keys removed
        """
        removed = self._ctx.codec.clear_secure()
        for key in KEYS.values():
            if self._ctx.store.get(key) is not None:
                self._ctx.store.remove(key)
                removed += 1

        self._ctx.audit_logger.log(AuditEventBuilder.pin_cleared())
        self._ctx.lock_controller.reset()
        return removed

    async def export_data(self, pin: str) -> str:
        """
        Encrypted snapshot of all budget data.

        Raises:
            AppLockedError: app is locked
            VerificationFailed: PIN does not match
        """
        storage = self._ctx.budget_storage()
        if not await self._ctx.pin_authenticator.verify_pin(pin):
            raise VerificationFailed(MSG_INCORRECT)

        exported = await encrypt_export(
            await storage.export_snapshot(),
            pin,
            self._ctx.key_deriver,
        )
        self._ctx.audit_logger.log(AuditEventBuilder.export_created(len(exported)))
        return exported

    async def import_data(self, exported: str, pin: str) -> None:
        """
        Replace budget data with a decrypted export.

        Raises:
            AppLockedError: app is locked
            DecryptionFailed: wrong PIN or damaged export
        """
        storage = self._ctx.budget_storage()
        try:
            snapshot = await decrypt_import(exported, pin, self._ctx.key_deriver)
            if not isinstance(snapshot, dict):
                raise DecryptionFailed("Export does not contain budget data")
        except DecryptionFailed as e:
            self._ctx.audit_logger.log(AuditEventBuilder.import_failed(str(e)))
            raise

        await storage.restore_snapshot(snapshot)
        self._ctx.audit_logger.log(AuditEventBuilder.import_completed())

    async def backup_to_drive(self, pin: str, access_token: str) -> None:
        """Always raises BackupNotImplemented until Drive is integrated."""
        exported = await self.export_data(pin)
        try:
            await upload_to_drive_appdata(exported, access_token)
        except BackupNotImplemented:
            self._ctx.audit_logger.log(AuditEventBuilder.backup_unavailable("upload"))
            raise

    async def restore_from_drive(self, pin: str, access_token: str) -> None:
        """Always raises BackupNotImplemented until Drive is integrated."""
        try:
            exported = await restore_from_drive_appdata(access_token)
        except BackupNotImplemented:
            self._ctx.audit_logger.log(AuditEventBuilder.backup_unavailable("restore"))
            raise
        await self.import_data(exported, pin)


def create_store(settings: Settings) -> KeyValueStore:
    storage_settings = settings.storage
    if storage_settings.backend == "memory":
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(storage_settings.store_path)


def create_app_context(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
) -> AppContext:
    """
    Factory function to create the application context.

    Args:
        settings: Settings to use (default: cached environment settings)
        store: Key-value store to use (default: built from settings)
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)
    store = store or create_store(settings)

    context = AppContext(store, settings)
    logger.info(
        "app_context_created",
        store=type(store).__name__,
        locked=context.lock_controller.is_locked,
        encrypt_at_rest=context.encrypt_at_rest,
    )
    return context
