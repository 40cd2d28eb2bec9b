"""
Storage Services Package

Provides abstract interfaces and concrete implementations for local
persistence (JSON files / memory) and the remote backup (Google Sheets).
"""

from snapspend.services.storage.interface import (
    REMOTE_COLUMNS,
    ConnectionError,
    LocalStorageInterface,
    RemoteExpenseStoreInterface,
    Slot,
    StorageError,
    expense_to_row,
)
from snapspend.services.storage.local import (
    InMemoryStorage,
    JsonFileStorage,
)
from snapspend.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
    parse_sheet_amount,
    parse_sheet_date,
)

__all__ = [
    # Interfaces
    "LocalStorageInterface",
    "RemoteExpenseStoreInterface",
    "REMOTE_COLUMNS",
    "expense_to_row",
    "Slot",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Local implementations
    "InMemoryStorage",
    "JsonFileStorage",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStore",
    "parse_sheet_amount",
    "parse_sheet_date",
]
