"""
Remote Session

An explicit object for "is a remote identity available". It is opened
when the user connects the backup and closed when they disconnect;
the sync engine asks it for the remote store instead of reading ambient
global state.
"""

from typing import Callable, Optional

import structlog
from pydantic import ValidationError

from snapspend.config import get_settings
from snapspend.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsExpenseStore,
    RemoteExpenseStoreInterface,
)


logger = structlog.get_logger(__name__)

RemoteFactory = Callable[[], RemoteExpenseStoreInterface]


def google_sheets_remote() -> RemoteExpenseStoreInterface:
    """Connect a Google Sheets store using GOOGLE_SHEETS_* settings."""
    try:
        settings = get_settings().google_sheets
    except ValidationError as e:
        raise ConnectionError(f"Google Sheets is not configured: {e}")

    client = GoogleSheetsClient(settings)
    client.connect()
    return GoogleSheetsExpenseStore(client)


class RemoteSession:
    """
    Lifecycle of the connection to the remote backup.

    open() -> remote identity available
    close() -> teardown; the remote store can no longer be reached
    """

    def __init__(self, remote_factory: Optional[RemoteFactory] = None):
        self._remote_factory = remote_factory or google_sheets_remote
        self._remote: Optional[RemoteExpenseStoreInterface] = None
        self._acquisitions = 0

    @property
    def is_available(self) -> bool:
        return self._remote is not None

    @property
    def acquisitions(self) -> int:
        """Number of times an identity has been acquired by open()."""
        return self._acquisitions

    @property
    def remote(self) -> RemoteExpenseStoreInterface:
        """
        The connected remote store.

        Raises:
            ConnectionError: If the session is not open
        """
        if self._remote is None:
            raise ConnectionError("Remote session is not open")
        return self._remote

    def open(self) -> bool:
        """
        Connect to the remote store.

        Returns:
            True if this call acquired the identity, False if the session
            was already open.

        Raises:
            ConnectionError: If connecting fails (session stays closed)
        """
        if self._remote is not None:
            return False

        self._remote = self._remote_factory()
        self._acquisitions += 1
        logger.info("remote_session_opened", acquisition=self._acquisitions)
        return True

    def close(self) -> None:
        if self._remote is None:
            return
        try:
            self._remote.close()
        finally:
            self._remote = None
            logger.info("remote_session_closed")
