"""
Audit Models for SnapSpend

Every mutation of local state and every call to an external collaborator
produces an audit event. This provides:
1. Traceability of what changed the canonical collection and when
2. Debugging information when sync or extraction goes wrong
3. Ability to reconstruct how a record got into the store

DESIGN DECISION: Audit events are emitted, never edited. They go to the
structured log; they are not part of any persisted slot.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expense Store
    EXPENSES_ADDED = "expenses_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # Wallet Registry
    WALLET_ADDED = "wallet_added"
    WALLET_REMOVED = "wallet_removed"
    WALLET_REMOVAL_REJECTED = "wallet_removal_rejected"

    # Settings Store
    SETTINGS_UPDATED = "settings_updated"

    # Capture / extraction
    EXTRACTION_COMPLETED = "extraction_completed"
    EXTRACTION_FAILED = "extraction_failed"
    NO_EXPENSES_DETECTED = "no_expenses_detected"

    # Reconciliation
    SYNC_STARTED = "sync_started"
    SYNC_COMPLETED = "sync_completed"
    SYNC_FAILED = "sync_failed"
    SYNC_SKIPPED = "sync_skipped"
    ROWS_PUSHED = "rows_pushed"
    PUSH_FAILED = "push_failed"

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

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'wallet', 'sync')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one capture or one sync run)"
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
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
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
        event = AuditEventBuilder.expenses_added(ids, source)
        event = AuditEventBuilder.sync_completed(added, remote, correlation_id)
    """

    @staticmethod
    def expenses_added(
        expense_ids: list[str],
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSES_ADDED,
            entity_type="expense",
            entity_id=expense_ids[0] if len(expense_ids) == 1 else None,
            correlation_id=correlation_id,
            description=f"{len(expense_ids)} expense(s) added via {source}",
            details={
                "expense_ids": expense_ids,
                "source": source,
            },
            is_user_action=source != "sync",
        )

    @staticmethod
    def expense_updated(expense_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense edited",
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(expense_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def wallet_added(wallet_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WALLET_ADDED,
            entity_type="wallet",
            entity_id=wallet_id,
            description=f"Wallet added: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def wallet_removed(wallet_id: str, remaining: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WALLET_REMOVED,
            entity_type="wallet",
            entity_id=wallet_id,
            description="Wallet removed",
            details={"remaining": remaining},
            is_user_action=True,
        )

    @staticmethod
    def wallet_removal_rejected(wallet_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WALLET_REMOVAL_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="wallet",
            entity_id=wallet_id,
            description="Refused to remove the last remaining wallet",
            is_user_action=True,
        )

    @staticmethod
    def settings_updated(changed_fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            description="Settings updated",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def extraction_completed(
        source: str,
        candidate_count: int,
        accepted_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_COMPLETED,
            entity_type="extraction",
            correlation_id=correlation_id,
            description=(
                f"Extraction from {source} returned {candidate_count} candidate(s), "
                f"{accepted_count} accepted"
            ),
            details={
                "source": source,
                "candidate_count": candidate_count,
                "accepted_count": accepted_count,
            },
        )

    @staticmethod
    def extraction_failed(
        source: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="extraction",
            correlation_id=correlation_id,
            description=f"Extraction from {source} failed",
            error_message=error_message,
            details={"source": source},
        )

    @staticmethod
    def no_expenses_detected(
        source: str,
        candidate_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NO_EXPENSES_DETECTED,
            severity=AuditSeverity.WARNING,
            entity_type="extraction",
            correlation_id=correlation_id,
            description=f"No expenses detected in {source} input",
            details={
                "source": source,
                "candidate_count": candidate_count,
            },
        )

    @staticmethod
    def sync_started(correlation_id: UUID, automatic: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_STARTED,
            entity_type="sync",
            correlation_id=correlation_id,
            description="Reconciliation started",
            details={"automatic": automatic},
            is_user_action=not automatic,
        )

    @staticmethod
    def sync_completed(
        added_count: int,
        remote_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_COMPLETED,
            entity_type="sync",
            correlation_id=correlation_id,
            description=f"Reconciliation added {added_count} of {remote_count} remote rows",
            details={
                "added_count": added_count,
                "remote_count": remote_count,
            },
        )

    @staticmethod
    def sync_failed(error_message: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="sync",
            correlation_id=correlation_id,
            description="Reconciliation failed, local data left unchanged",
            error_message=error_message,
        )

    @staticmethod
    def sync_skipped(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_SKIPPED,
            severity=AuditSeverity.WARNING,
            entity_type="sync",
            description=f"Reconciliation skipped: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def rows_pushed(expense_ids: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROWS_PUSHED,
            entity_type="sync",
            description=f"{len(expense_ids)} row(s) appended to the remote store",
            details={"expense_ids": expense_ids},
        )

    @staticmethod
    def push_failed(expense_ids: list[str], error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PUSH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="sync",
            description="Could not append rows to the remote store",
            error_message=error_message,
            details={"expense_ids": expense_ids},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
