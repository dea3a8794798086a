"""
Security Models

Shapes shared by the security package, the orchestrator and the UI:
the persisted encrypted payload, the typed decrypt result, and the
lock state machine's states and input signals.
"""

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class SecurePayload(BaseModel):
    """
    An encrypted record as persisted: ``{"iv": b64, "ciphertext": b64}``.

    The AES-GCM authentication tag is carried at the end of the
    ciphertext, so there is no separate tag field.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    iv: str = Field(..., min_length=1, description="Base64 of the 12-byte IV")
    ciphertext: str = Field(..., min_length=1, description="Base64 of ciphertext + tag")


# =============================================================================
# DECRYPT RESULT - tagged union, callers match on `ok`
# =============================================================================

class Decrypted(BaseModel):
    """Payload decrypted and parsed successfully."""
    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    data: Any


class DecryptFailed(BaseModel):
    """
    Payload exists but could not be read with the supplied key.

    Covers wrong key, tampered ciphertext and malformed records alike;
    they are deliberately indistinguishable to callers.
    """
    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    reason: str


DecryptResult = Union[Decrypted, DecryptFailed]


# =============================================================================
# LOCK STATE MACHINE
# =============================================================================

class LockState(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class LifecycleSignal(str, Enum):
    """
    Environment lifecycle signals fed to the lock controller.

    These mirror the browser's visibilitychange, blur/focus,
    pagehide and pageshow (persisted) events.
    """
    VISIBILITY_HIDDEN = "visibility_hidden"
    VISIBILITY_VISIBLE = "visibility_visible"
    FOCUS_LOST = "focus_lost"
    FOCUS_GAINED = "focus_gained"
    PAGE_HIDDEN = "page_hidden"
    PAGE_RESTORED = "page_restored"


LOCK_TRIGGERS = frozenset({
    LifecycleSignal.VISIBILITY_HIDDEN,
    LifecycleSignal.FOCUS_LOST,
    LifecycleSignal.PAGE_HIDDEN,
    LifecycleSignal.PAGE_RESTORED,
})


class UnlockResult(BaseModel):
    """Outcome of an unlock or onboarding attempt, ready for display."""

    success: bool
    message: str = ""
