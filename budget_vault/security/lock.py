"""
Lock-State Controller

Two states, LOCKED and UNLOCKED.

- Starts LOCKED if a PIN is configured, UNLOCKED otherwise (first run).
- Any lock trigger (hidden, focus lost, page hidden, page restored)
  forces LOCKED from any state. Regaining visibility or focus never
  unlocks.
- The only way to UNLOCKED is `unlock(pin)`: verify the PIN, derive the
  session key. Locking discards the key.

DESIGN DECISION: The transition itself is the pure function
`next_state`. The controller wraps it with the side effects
(key disposal, audit, listeners).
"""

from typing import Callable, Optional

import structlog

from budget_vault.audit.logger import AuditLogger, create_correlation_id
from budget_vault.models.audit import AuditEventBuilder
from budget_vault.models.security import LOCK_TRIGGERS, LifecycleSignal, LockState
from budget_vault.security.errors import AppLockedError, InvalidPinFormat, VerificationFailed
from budget_vault.security.kdf import EncryptionKey, KeyDeriver
from budget_vault.security.pin import PinAuthenticator, is_valid_pin


logger = structlog.get_logger(__name__)

StateListener = Callable[[LockState], None]


def initial_state(has_pin: bool) -> LockState:
    return LockState.LOCKED if has_pin else LockState.UNLOCKED


def next_state(state: LockState, signal: LifecycleSignal) -> LockState:
    """Pure transition for lifecycle signals. Signals can only lock."""
    if signal in LOCK_TRIGGERS:
        return LockState.LOCKED
    return state


class LockController:
    """Owns the lock state and the session key for one running app."""

    def __init__(
        self,
        authenticator: PinAuthenticator,
        key_deriver: KeyDeriver,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._authenticator = authenticator
        self._key_deriver = key_deriver
        self._audit_logger = audit_logger
        self._listeners: list[StateListener] = []
        self._session_key: Optional[EncryptionKey] = None
        # Bumped on every lock so an in-flight unlock can tell it was overtaken
        self._lock_epoch = 0
        self._state = initial_state(authenticator.has_pin())

    @property
    def state(self) -> LockState:
        return self._state

    @property
    def is_locked(self) -> bool:
        return self._state == LockState.LOCKED

    @property
    def session_key(self) -> Optional[EncryptionKey]:
        """The derived key while unlocked, None otherwise."""
        return self._session_key

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Be told about state changes.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def handle_signal(self, signal: LifecycleSignal) -> LockState:
        # Applied even when already locked, to abort any in-flight unlock
        if next_state(self._state, signal) == LockState.LOCKED and signal in LOCK_TRIGGERS:
            self._lock(trigger=signal.value)
        return self._state

    def lock(self) -> None:
        self._lock(trigger="manual")

    async def unlock(self, pin: str) -> EncryptionKey:
        """
        Verify the PIN and derive the session key.

        Raises:
            InvalidPinFormat: PIN is not 4-6 digits
            VerificationFailed: PIN does not match
            AppLockedError: a lock trigger arrived while unlocking
        """
        if not is_valid_pin(pin):
            raise InvalidPinFormat("PIN must be 4-6 digits")

        correlation_id = create_correlation_id()
        epoch = self._lock_epoch

        if not await self._authenticator.verify_pin(pin):
            if self._audit_logger:
                self._audit_logger.log(AuditEventBuilder.pin_rejected(correlation_id))
            raise VerificationFailed("Incorrect PIN")

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.pin_verified(correlation_id))

        key = await self._key_deriver.derive_key_from_pin(pin)

        if epoch != self._lock_epoch:
            logger.info("unlock_superseded_by_lock")
            raise AppLockedError("App was locked while unlocking")

        self._session_key = key
        self._set_state(LockState.UNLOCKED)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.app_unlocked(correlation_id))
        return key

    def reset(self) -> None:
        """Drop the session and re-derive the start state from the store."""
        self._lock_epoch += 1
        self._session_key = None
        self._set_state(initial_state(self._authenticator.has_pin()))

    def _lock(self, trigger: str) -> None:
        self._lock_epoch += 1
        self._session_key = None
        was_locked = self.is_locked
        self._set_state(LockState.LOCKED)
        if not was_locked and self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.app_locked(trigger))

    def _set_state(self, state: LockState) -> None:
        if state == self._state:
            return
        self._state = state
        logger.info("lock_state_changed", state=state.value)
        for listener in list(self._listeners):
            listener(state)
