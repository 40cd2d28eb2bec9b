"""
User-Facing Notices

The core never talks to the screen. It posts discrete, single-shot
notices and the presentation layer decides how to show them.
Notices are not part of any persisted state.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field


class NoticeKind(str, Enum):
    NO_EXPENSES_DETECTED = "no_expenses_detected"
    PROCESSING_FAILED = "processing_failed"
    SYNC_FAILED = "sync_failed"
    CANNOT_REMOVE_LAST_WALLET = "cannot_remove_last_wallet"


DEFAULT_MESSAGES = {
    NoticeKind.NO_EXPENSES_DETECTED: "No expenses detected. Please try again.",
    NoticeKind.PROCESSING_FAILED: "Could not understand the expense. Please try again.",
    NoticeKind.SYNC_FAILED: "Failed to sync data from Google Sheet.",
    NoticeKind.CANNOT_REMOVE_LAST_WALLET: "You must have at least one wallet.",
}


class Notice(BaseModel):
    """One notice for the user."""

    kind: NoticeKind
    message: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class NoticeBoard:
    """
    Collects notices and forwards each to an optional listener.

    Posting never blocks.
    """

    def __init__(self, listener: Optional[Callable[[Notice], None]] = None):
        self._listener = listener
        self._pending: list[Notice] = []

    def post(self, kind: NoticeKind, message: Optional[str] = None) -> Notice:
        notice = Notice(kind=kind, message=message or DEFAULT_MESSAGES[kind])
        self._pending.append(notice)
        if self._listener is not None:
            self._listener(notice)
        return notice

    @property
    def pending(self) -> list[Notice]:
        return list(self._pending)

    def drain(self) -> list[Notice]:
        """Return all pending notices and clear them."""
        notices, self._pending = self._pending, []
        return notices
