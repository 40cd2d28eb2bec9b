"""
Shared fixtures and in-memory fakes.

No test talks to Gemini or Google Sheets; the remote store and the
extraction agent are replaced by the fakes below.
"""

from decimal import Decimal
from typing import Optional

import pytest

from snapspend.audit import AuditLogger
from snapspend.models import Expense, ParsedExpense, RemoteExpense
from snapspend.notifications import NoticeBoard
from snapspend.services.storage import (
    InMemoryStorage,
    RemoteExpenseStoreInterface,
    StorageError,
)
from snapspend.store import ExpenseStore, SettingsStore, WalletRegistry
from snapspend.sync import RemoteSession


class FakeRemoteStore(RemoteExpenseStoreInterface):
    """Remote store holding rows in memory."""

    def __init__(self, rows: Optional[list[RemoteExpense]] = None):
        self.rows = list(rows or [])
        self.appended: list[list] = []
        self.read_calls = 0
        self.fail_read = False
        self.fail_append = False
        self.closed = False

    async def read_rows(self) -> list[RemoteExpense]:
        self.read_calls += 1
        if self.fail_read:
            raise StorageError("sheet unavailable")
        return list(self.rows)

    async def append_rows(self, rows: list[list]) -> int:
        if self.fail_append:
            raise StorageError("append rejected")
        self.appended.extend(rows)
        return len(rows)

    def close(self) -> None:
        self.closed = True


class FailingStorage(InMemoryStorage):
    """Storage whose writes can be made to fail."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_writes = False

    def write(self, slot, payload):
        if self.fail_writes:
            raise StorageError("disk full")
        super().write(slot, payload)


class FakeAgent:
    """Extraction agent returning canned candidates."""

    def __init__(
        self,
        candidates: Optional[list[ParsedExpense]] = None,
        error: Optional[Exception] = None,
        answer: str = "You spent 12.50 on coffee.",
    ):
        self.candidates = list(candidates or [])
        self.error = error
        self.answer = answer
        self.calls: list[tuple] = []

    async def _respond(self, name: str, *args) -> list[ParsedExpense]:
        self.calls.append((name, args))
        if self.error is not None:
            raise self.error
        return list(self.candidates)

    async def parse_audio(self, audio, mime_type, currency, wallet_names, language):
        return await self._respond("parse_audio", audio, mime_type, currency, wallet_names, language)

    async def parse_image(self, image, mime_type, currency, wallet_names, language):
        return await self._respond("parse_image", image, mime_type, currency, wallet_names, language)

    async def parse_text(self, text, currency, language):
        return await self._respond("parse_text", text, currency, language)

    async def transcribe_audio(self, audio, mime_type, language):
        self.calls.append(("transcribe_audio", (audio, mime_type, language)))
        if self.error is not None:
            raise self.error
        return "how much on coffee"

    async def ask(self, question, expenses, currency, language):
        self.calls.append(("ask", (question, list(expenses), currency, language)))
        if self.error is not None:
            raise self.error
        return self.answer


def make_expense(
    expense_id: str,
    amount: str,
    date: str,
    description: str = "",
    category: str = "Other",
    wallet_id: Optional[str] = "default-cash",
) -> Expense:
    return Expense(
        id=expense_id,
        amount=Decimal(amount),
        category=category,
        description=description,
        date=date,
        wallet_id=wallet_id,
        created_at=0,
    )


def make_remote(
    amount: str,
    date: str,
    description: str = "Synced",
    category: str = "Other",
    wallet_name: Optional[str] = None,
) -> RemoteExpense:
    return RemoteExpense(
        amount=Decimal(amount),
        date=date,
        description=description,
        category=category,
        wallet_name=wallet_name,
    )


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def notices():
    return NoticeBoard()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def wallets(storage, notices, audit_logger):
    return WalletRegistry(storage, notices, audit_logger)


@pytest.fixture
def settings_store(storage, audit_logger):
    return SettingsStore(storage, audit_logger)


@pytest.fixture
def expense_store(storage, wallets, audit_logger):
    return ExpenseStore(storage, wallets, audit_logger)


@pytest.fixture
def remote():
    return FakeRemoteStore()


@pytest.fixture
def session(remote):
    return RemoteSession(remote_factory=lambda: remote)
