"""
Audit Models for Budget Vault

Every security-relevant action is recorded as an audit event:
PIN setup and checks, lock transitions, decrypt failures, wipes and
exports.

DESIGN DECISION: Audit events NEVER carry secrets. No PIN, no key,
no salt, no digest and no decrypted payload may appear in `details`.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # PIN lifecycle
    PIN_CREATED = "pin_created"
    PIN_VERIFIED = "pin_verified"
    PIN_REJECTED = "pin_rejected"
    PIN_FORMAT_REJECTED = "pin_format_rejected"
    PIN_CLEARED = "pin_cleared"

    # Lock state
    APP_LOCKED = "app_locked"
    APP_UNLOCKED = "app_unlocked"

    # Encrypted storage
    SECURE_PAYLOAD_SAVED = "secure_payload_saved"
    SECURE_PAYLOAD_DECRYPT_FAILED = "secure_payload_decrypt_failed"
    SECURE_DATA_WIPED = "secure_data_wiped"

    # Export / backup
    EXPORT_CREATED = "export_created"
    IMPORT_COMPLETED = "import_completed"
    IMPORT_FAILED = "import_failed"
    BACKUP_UNAVAILABLE = "backup_unavailable"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one unlock attempt)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.pin_rejected()
        event = AuditEventBuilder.app_locked(trigger="focus_lost")
    """

    @staticmethod
    def pin_created() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PIN_CREATED,
            description="PIN created",
            is_user_action=True,
        )

    @staticmethod
    def pin_verified(correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PIN_VERIFIED,
            correlation_id=correlation_id,
            description="PIN verified",
            is_user_action=True,
        )

    @staticmethod
    def pin_rejected(correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PIN_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Incorrect PIN entered",
            is_user_action=True,
        )

    @staticmethod
    def pin_format_rejected(length: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PIN_FORMAT_REJECTED,
            severity=AuditSeverity.WARNING,
            description="PIN rejected: must be 4-6 digits",
            details={"length": length},
            is_user_action=True,
        )

    @staticmethod
    def pin_cleared() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PIN_CLEARED,
            description="PIN verifier and PIN salt removed",
            is_user_action=True,
        )

    @staticmethod
    def app_locked(trigger: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APP_LOCKED,
            description=f"App locked ({trigger})",
            details={"trigger": trigger},
        )

    @staticmethod
    def app_unlocked(correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APP_UNLOCKED,
            correlation_id=correlation_id,
            description="App unlocked",
            is_user_action=True,
        )

    @staticmethod
    def secure_payload_saved(name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SECURE_PAYLOAD_SAVED,
            severity=AuditSeverity.DEBUG,
            description=f"Encrypted record saved: {name}",
            details={"name": name},
        )

    @staticmethod
    def secure_payload_decrypt_failed(name: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SECURE_PAYLOAD_DECRYPT_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Failed to decrypt secure payload: {name}",
            details={"name": name},
            error_message=reason,
        )

    @staticmethod
    def secure_data_wiped(removed: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SECURE_DATA_WIPED,
            severity=AuditSeverity.WARNING,
            description=f"Local secure data wiped ({removed} keys)",
            details={"removed_keys": removed},
            is_user_action=True,
        )

    @staticmethod
    def export_created(size: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_CREATED,
            description="Encrypted export created",
            details={"size_bytes": size},
            is_user_action=True,
        )

    @staticmethod
    def import_completed() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_COMPLETED,
            description="Encrypted export imported",
            is_user_action=True,
        )

    @staticmethod
    def import_failed(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.WARNING,
            description="Encrypted export could not be imported",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def backup_unavailable(operation: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_UNAVAILABLE,
            severity=AuditSeverity.WARNING,
            description=f"Remote backup not available: {operation}",
            details={"operation": operation},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details={"error_type": error_type, **(details or {})},
            error_message=error_message,
        )
