"""Services package."""

from snapspend.services.storage import (
    REMOTE_COLUMNS,
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
    InMemoryStorage,
    JsonFileStorage,
    LocalStorageInterface,
    RemoteExpenseStoreInterface,
    Slot,
    StorageError,
)

__all__ = [
    "REMOTE_COLUMNS",
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStore",
    "InMemoryStorage",
    "JsonFileStorage",
    "LocalStorageInterface",
    "RemoteExpenseStoreInterface",
    "Slot",
    "StorageError",
]
