"""
Sync Package

Merges the remote Google Sheets backup into the local collection and
pushes new captures back to it.
"""

from snapspend.sync.engine import BootstrapSyncTrigger, SyncEngine
from snapspend.sync.reconciler import (
    DEFAULT_AMOUNT_TOLERANCE,
    is_duplicate,
    reconcile,
    sort_newest_first,
)
from snapspend.sync.session import RemoteSession, google_sheets_remote

__all__ = [
    "BootstrapSyncTrigger",
    "DEFAULT_AMOUNT_TOLERANCE",
    "RemoteSession",
    "SyncEngine",
    "google_sheets_remote",
    "is_duplicate",
    "reconcile",
    "sort_newest_first",
]
