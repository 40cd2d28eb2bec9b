"""
Result Models

Outcomes handed back to callers by screening, reconciliation and
summaries. None of these are persisted.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from snapspend.models.expense import Expense, NewExpense


# =============================================================================
# SCREENING
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found while screening a capture candidate."""

    index: int = Field(
        ...,
        ge=0,
        description="Position of the candidate in the extraction output"
    )
    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'non_positive_amount', 'unparseable_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ScreeningResult(BaseModel):
    """Candidates accepted for insertion, plus what was dropped and why."""

    accepted: list[NewExpense] = Field(default_factory=list)
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def rejected_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def has_expenses(self) -> bool:
        return len(self.accepted) > 0


# =============================================================================
# RECONCILIATION
# =============================================================================

class MergeResult(BaseModel):
    """Output of a pure reconciliation pass."""

    expenses: list[Expense]
    added_count: int = Field(ge=0)

    @property
    def changed(self) -> bool:
        return self.added_count > 0


class SyncStatus(str, Enum):
    """How a sync request ended."""
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_CONNECTED = "not_connected"
    BUSY = "busy"


class SyncResult(BaseModel):
    """Caller-visible report of one sync request."""

    status: SyncStatus
    added_count: int = Field(default=0, ge=0)
    remote_count: int = Field(
        default=0,
        ge=0,
        description="Rows read from the remote store"
    )
    error_message: Optional[str] = None
    finished_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def succeeded(self) -> bool:
        return self.status == SyncStatus.COMPLETED


# =============================================================================
# SUMMARIES
# =============================================================================

class GroupTotal(BaseModel):
    """Total spent for one category or wallet."""

    key: str
    total: Decimal
    count: int = Field(ge=0)


class SpendingSummary(BaseModel):
    """Aggregates over a filtered expense view."""

    total: Decimal = Field(default=Decimal("0"))
    count: int = Field(default=0, ge=0)
    by_category: list[GroupTotal] = Field(default_factory=list)
    by_wallet: list[GroupTotal] = Field(default_factory=list)
    spending_limit: Decimal = Field(default=Decimal("0"), ge=0)
    limit_progress: float = Field(
        default=0.0,
        ge=0.0,
        le=100.0,
        description="Percent of the spending limit used, capped at 100"
    )

    @property
    def over_limit(self) -> bool:
        return self.spending_limit > 0 and self.total > self.spending_limit
