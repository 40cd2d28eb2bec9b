"""
Abstract Storage Interfaces

DESIGN DECISION: We define abstract interfaces for both storage roles.
This allows us to:
1. Swap JSON files for SQLite (or browser storage) later
2. Use in-memory storage for testing
3. Swap Google Sheets for another remote backup
4. Keep the stores and the sync engine decoupled from transports

LOCAL storage is three independent slots, each read once at startup and
overwritten wholesale on every mutation of its domain.

REMOTE storage is a flat table of expense rows that can be appended to
and read back in full.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

from snapspend.models.expense import Expense, RemoteExpense, date_prefix


class Slot(str, Enum):
    """Independently addressable local persistence slots."""
    EXPENSES = "expenses"
    WALLETS = "wallets"
    SETTINGS = "settings"


# Remote row layout: [date, category, description, amount, currency, wallet]
REMOTE_COLUMNS = [
    "Date",
    "Category",
    "Description",
    "Amount",
    "Currency",
    "Wallet",
]


def expense_to_row(expense: Expense, currency: str, wallet_name: str) -> list:
    """Convert an Expense to a remote row in REMOTE_COLUMNS order."""
    return [
        date_prefix(expense.date),
        expense.category,
        expense.description,
        str(expense.amount),
        currency,
        wallet_name,
    ]


class LocalStorageInterface(ABC):
    """
    Abstract interface for durable local persistence.

    Implementations must make write() atomic for the whole slot: a reader
    sees either the previous payload or the new one, never a mix.
    """

    @abstractmethod
    def read(self, slot: Slot) -> Optional[Any]:
        """
        Read a slot.

        Returns:
            The JSON-compatible payload, or None if the slot was never
            written (or cannot be decoded).
        """
        pass

    @abstractmethod
    def write(self, slot: Slot, payload: Any) -> None:
        """
        Overwrite a slot with a JSON-compatible payload.

        Raises:
            StorageError: If the write fails. The previous payload stays intact.
        """
        pass


class RemoteExpenseStoreInterface(ABC):
    """
    Abstract interface for the remote tabular backup.

    The remote store knows nothing about ids or wallets ids - only
    the six display columns.
    """

    @abstractmethod
    async def read_rows(self) -> list[RemoteExpense]:
        """
        Read every usable expense row.

        Rows with unparseable dates or non-positive amounts are excluded.

        Raises:
            StorageError: If the rows cannot be fetched
        """
        pass

    @abstractmethod
    async def append_rows(self, rows: list[list]) -> int:
        """
        Append rows in REMOTE_COLUMNS order.

        Returns:
            Number of rows appended

        Raises:
            StorageError: If the append fails
        """
        pass

    def close(self) -> None:
        """Release any connection held by the store."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
