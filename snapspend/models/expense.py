"""
Expense Data Models for SnapSpend

These models define the schemas for every expense shape that flows
through the system:

1. ParsedExpense  - what an extraction call THINKS it heard/saw
2. NewExpense     - a screened candidate, ready for the store
3. Expense        - a canonical record owned by the Expense Store
4. RemoteExpense  - a row read back from the spreadsheet backup

DESIGN DECISION: The record date is kept as the ISO-8601 string it was
captured with. Only its calendar day carries meaning, and a record whose
date cannot be parsed must stay loadable (it is hidden from views, not
dropped from storage).
"""

import time
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_CATEGORY = "Other"


# =============================================================================
# ENUMS
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Suggested category labels.

    Categories on records are free-form strings. This enum is only the
    vocabulary offered to the extraction model and used for defaults.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    HOUSING = "Housing"
    INSURANCE = "Insurance"
    EDUCATION = "Education"
    GROCERIES = "Groceries"
    TRAVEL = "Travel"
    SUBSCRIPTIONS = "Subscriptions"
    PERSONAL_CARE = "Personal Care"
    GIFTS = "Gifts"
    SAVINGS = "Savings"
    WORK = "Work"
    OTHER = "Other"


class CaptureSource(str, Enum):
    """Pathway an expense entered the system through."""
    VOICE = "voice"
    PHOTO = "photo"
    TEXT = "text"
    MANUAL = "manual"
    SYNC = "sync"

    @property
    def placeholder_description(self) -> str:
        """Description used when the candidate carries none."""
        return {
            CaptureSource.VOICE: "Voice Entry",
            CaptureSource.PHOTO: "Receipt",
            CaptureSource.TEXT: "Text Entry",
            CaptureSource.MANUAL: "",
            CaptureSource.SYNC: "Synced",
        }[self]


# =============================================================================
# DATE HELPERS
# =============================================================================

def parse_timestamp(value: Optional[str]) -> Optional[dt.datetime]:
    """
    Parse an ISO-8601 date or timestamp into a naive datetime.

    The wall-clock value is kept as written (offsets are dropped, not
    converted) so the calendar day matches the date prefix of the string.
    Returns None for anything unparseable.
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = dt.datetime.fromisoformat(text)
    except ValueError:
        return None

    return parsed.replace(tzinfo=None)


def date_prefix(value: Optional[str]) -> str:
    """Calendar-day part of an ISO string, compared textually during sync."""
    return (value or "").split("T")[0].strip()


def now_millis() -> int:
    """Creation timestamp in epoch milliseconds."""
    return int(time.time() * 1000)


# =============================================================================
# EXPENSE MODELS
# =============================================================================

class ParsedExpense(BaseModel):
    """
    One expense candidate returned by the extraction service.

    CRITICAL: This is PROPOSED data. An amount of zero or less means
    "nothing detected" and the candidate never reaches the store.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    amount: Decimal = Field(
        ...,
        description="Cost of this item. 0 when no valid expense was detected."
    )
    category: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = Field(
        default=None,
        description="ISO-8601 date (YYYY-MM-DD)"
    )
    wallet: Optional[str] = Field(
        default=None,
        description="Approximate wallet / payment method name"
    )


class NewExpense(BaseModel):
    """
    An expense ready to be inserted.

    Lacks an identifier and creation timestamp; the store assigns both.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal
    category: str = Field(default=DEFAULT_CATEGORY)
    description: str = Field(default="")
    date: str = Field(
        default_factory=lambda: dt.datetime.now().isoformat(timespec="seconds")
    )
    wallet_id: Optional[str] = None


class Expense(BaseModel):
    """
    A canonical expense record.

    Only the Expense Store creates and persists these.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount in the user's currency (no conversion)"
    )
    category: str = Field(default=DEFAULT_CATEGORY)
    description: str = Field(default="")
    date: str = Field(
        ...,
        description="ISO-8601 date or timestamp; only the day is meaningful"
    )
    wallet_id: Optional[str] = None
    created_at: int = Field(
        default_factory=now_millis,
        description="Creation time (epoch ms), for tie-breaking and audit only"
    )

    @classmethod
    def from_new(
        cls,
        item: NewExpense,
        wallet_id: Optional[str] = None,
    ) -> "Expense":
        """Materialize a NewExpense with a fresh id and creation time."""
        return cls(
            id=str(uuid4()),
            amount=item.amount,
            category=item.category or DEFAULT_CATEGORY,
            description=item.description,
            date=item.date,
            wallet_id=wallet_id if wallet_id is not None else item.wallet_id,
            created_at=now_millis(),
        )

    @property
    def timestamp(self) -> Optional[dt.datetime]:
        return parse_timestamp(self.date)

    @property
    def calendar_day(self) -> Optional[dt.date]:
        parsed = self.timestamp
        return parsed.date() if parsed else None

    @property
    def day_key(self) -> str:
        return date_prefix(self.date)


class RemoteExpense(BaseModel):
    """
    An expense row read from the remote backup.

    Row layout: [date, category, description, amount, currency, wallet].
    Rows with unparseable dates or non-positive amounts never become
    RemoteExpense objects.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    date: str
    category: str = Field(default=DEFAULT_CATEGORY)
    description: str = Field(default="Synced")
    amount: Decimal = Field(..., gt=0)
    currency: Optional[str] = None
    wallet_name: Optional[str] = None
