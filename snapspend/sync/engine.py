"""
Sync Engine

DESIGN DECISION: Reconciliation is all-or-nothing. The remote snapshot
is fetched and merged in memory, and only a successful merge that added
something is committed to the ExpenseStore. A failure at any step leaves
the local collection exactly as it was and posts a SYNC_FAILED notice.

FLOW:
1. Check the remote session -> NOT_CONNECTED if no identity
2. Refuse overlapping runs -> BUSY
3. Fetch remote rows
4. reconcile() against the current collection
5. Commit with one write, only if rows were added

Pushing new captures to the remote is a separate fire-and-forget
operation. Its failures are logged and never reach the user.
"""

from decimal import Decimal
from typing import Iterable, Optional

import structlog

from snapspend.audit import AuditLogger, create_correlation_id
from snapspend.config import get_settings
from snapspend.models.audit import AuditEventBuilder
from snapspend.models.expense import Expense
from snapspend.models.results import SyncResult, SyncStatus
from snapspend.notifications import NoticeBoard, NoticeKind
from snapspend.services.storage import expense_to_row
from snapspend.store.expenses import ExpenseStore
from snapspend.store.wallets import WalletRegistry
from snapspend.sync.reconciler import reconcile
from snapspend.sync.session import RemoteSession


logger = structlog.get_logger(__name__)


class SyncEngine:
    """Runs reconciliation and pushes against the current remote session."""

    def __init__(
        self,
        store: ExpenseStore,
        wallets: WalletRegistry,
        session: RemoteSession,
        notices: Optional[NoticeBoard] = None,
        audit_logger: Optional[AuditLogger] = None,
        tolerance: Optional[Decimal] = None,
    ):
        self._store = store
        self._wallets = wallets
        self._session = session
        self._notices = notices or NoticeBoard()
        self._audit_logger = audit_logger or AuditLogger()
        self._tolerance = (
            tolerance if tolerance is not None
            else get_settings().app.sync_amount_tolerance
        )
        self._syncing = False

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    @property
    def session(self) -> RemoteSession:
        return self._session

    async def sync(self, automatic: bool = False) -> SyncResult:
        """
        Merge the remote backup into the local collection.

        Args:
            automatic: True when started by the bootstrap trigger

        Returns:
            SyncResult describing the outcome. Never raises.
        """
        if not self._session.is_available:
            self._audit_logger.log(AuditEventBuilder.sync_skipped("not_connected"))
            return SyncResult(status=SyncStatus.NOT_CONNECTED)

        if self._syncing:
            self._audit_logger.log(AuditEventBuilder.sync_skipped("already_running"))
            return SyncResult(status=SyncStatus.BUSY)

        self._syncing = True
        correlation_id = create_correlation_id()
        self._audit_logger.log(AuditEventBuilder.sync_started(correlation_id, automatic))

        try:
            remote_rows = await self._session.remote.read_rows()
            result = reconcile(
                self._store.expenses,
                remote_rows,
                self._wallets,
                tolerance=self._tolerance,
            )
            if result.changed:
                self._store.replace_all(result.expenses)
        except Exception as e:
            logger.error("sync_failed", error=str(e), correlation_id=str(correlation_id))
            self._audit_logger.log(AuditEventBuilder.sync_failed(str(e), correlation_id))
            self._notices.post(NoticeKind.SYNC_FAILED)
            return SyncResult(status=SyncStatus.FAILED, error_message=str(e))
        finally:
            self._syncing = False

        self._audit_logger.log(
            AuditEventBuilder.sync_completed(
                result.added_count,
                len(remote_rows),
                correlation_id,
            )
        )
        return SyncResult(
            status=SyncStatus.COMPLETED,
            added_count=result.added_count,
            remote_count=len(remote_rows),
        )

    async def push(self, expenses: Iterable[Expense], currency: str) -> int:
        """
        Append expenses to the remote backup.

        Returns:
            Rows appended; 0 if not connected or the append failed
        """
        expenses = list(expenses)
        if not expenses or not self._session.is_available:
            return 0

        expense_ids = [expense.id for expense in expenses]
        rows = [
            expense_to_row(expense, currency, self._wallets.name_for(expense.wallet_id))
            for expense in expenses
        ]

        try:
            appended = await self._session.remote.append_rows(rows)
        except Exception as e:
            logger.warning("push_failed", error=str(e), count=len(rows))
            self._audit_logger.log(AuditEventBuilder.push_failed(expense_ids, str(e)))
            return 0

        self._audit_logger.log(AuditEventBuilder.rows_pushed(expense_ids))
        return appended


class BootstrapSyncTrigger:
    """
    Runs one automatic sync per remote identity acquisition, when the
    local collection is empty at that moment.

    Firing disarms the trigger for the current acquisition, so repeated
    calls within one session never loop on an empty remote. A new
    acquisition (close then open) arms it again, as does a commit that
    leaves the collection empty.
    """

    def __init__(self, engine: SyncEngine, store: ExpenseStore):
        self._engine = engine
        self._store = store
        self._armed = True
        self._fired_for: Optional[int] = None
        self._unsubscribe = store.subscribe(self._on_commit)

    @property
    def armed(self) -> bool:
        return self._armed or self._fired_for != self._engine.session.acquisitions

    def _on_commit(self, expenses: list[Expense]) -> None:
        if not expenses:
            self._armed = True

    async def identity_acquired(self) -> Optional[SyncResult]:
        """
        Call when the remote session has just opened.

        Returns:
            The automatic sync's result, or None if it did not fire
        """
        if not self.armed or not self._store.is_empty:
            return None
        if not self._engine.session.is_available:
            return None

        self._armed = False
        self._fired_for = self._engine.session.acquisitions
        logger.info("bootstrap_sync_fired", acquisition=self._fired_for)
        return await self._engine.sync(automatic=True)

    def detach(self) -> None:
        self._unsubscribe()
