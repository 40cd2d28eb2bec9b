"""
Data Models Package

This package contains all Pydantic models used in SnapSpend.
All data flowing through the system must conform to these schemas.
"""

from snapspend.models.expense import (
    DEFAULT_CATEGORY,
    CaptureSource,
    Expense,
    ExpenseCategory,
    NewExpense,
    ParsedExpense,
    RemoteExpense,
    date_prefix,
    parse_timestamp,
)
from snapspend.models.wallet import (
    DEFAULT_WALLETS,
    Wallet,
    WalletType,
)
from snapspend.models.preferences import (
    DateFilter,
    DateFilterType,
    Language,
    Theme,
    UserSettings,
    WeekStart,
)
from snapspend.models.results import (
    GroupTotal,
    MergeResult,
    ScreeningResult,
    SpendingSummary,
    SyncResult,
    SyncStatus,
    ValidationIssue,
)
from snapspend.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "DEFAULT_CATEGORY",
    "CaptureSource",
    "Expense",
    "ExpenseCategory",
    "NewExpense",
    "ParsedExpense",
    "RemoteExpense",
    "date_prefix",
    "parse_timestamp",
    # Wallet models
    "DEFAULT_WALLETS",
    "Wallet",
    "WalletType",
    # Preferences
    "DateFilter",
    "DateFilterType",
    "Language",
    "Theme",
    "UserSettings",
    "WeekStart",
    # Results
    "GroupTotal",
    "MergeResult",
    "ScreeningResult",
    "SpendingSummary",
    "SyncResult",
    "SyncStatus",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
