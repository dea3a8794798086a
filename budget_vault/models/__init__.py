"""
Data Models Package

Pydantic models for the budget domain, the security layer and the
audit trail.
"""

from budget_vault.models.budget import (
    CURRENCIES,
    Category,
    CategoryCreate,
    CategoryUpdate,
    Currency,
    Transaction,
    TransactionCreate,
    TransactionType,
    TransactionUpdate,
    format_amount,
)
from budget_vault.models.security import (
    LOCK_TRIGGERS,
    DecryptFailed,
    Decrypted,
    DecryptResult,
    LifecycleSignal,
    LockState,
    SecurePayload,
    UnlockResult,
)
from budget_vault.models.insights import (
    BudgetOverview,
    CategoryBudgetStatus,
    CategorySpending,
    InsightView,
    MonthlyTotal,
    SpendingSummary,
)
from budget_vault.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Budget models
    "CURRENCIES",
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "Currency",
    "Transaction",
    "TransactionCreate",
    "TransactionType",
    "TransactionUpdate",
    "format_amount",
    # Security models
    "LOCK_TRIGGERS",
    "DecryptFailed",
    "Decrypted",
    "DecryptResult",
    "LifecycleSignal",
    "LockState",
    "SecurePayload",
    "UnlockResult",
    # Insight models
    "BudgetOverview",
    "CategoryBudgetStatus",
    "CategorySpending",
    "InsightView",
    "MonthlyTotal",
    "SpendingSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
