"""
Expense Store

The canonical, durable collection of expense records.

GUARANTEES:
- Only this class writes the expenses slot
- Every mutation persists the full collection BEFORE it becomes visible;
  if the write fails the in-memory collection is untouched
- No record with a non-positive amount is ever stored
- Unknown ids on update/remove are a silent no-op (reported as False)
"""

from typing import Callable, Iterable, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from snapspend.audit import AuditLogger
from snapspend.models.audit import AuditEventBuilder
from snapspend.models.expense import CaptureSource, Expense, NewExpense
from snapspend.services.storage import LocalStorageInterface, Slot
from snapspend.store.wallets import WalletRegistry


logger = structlog.get_logger(__name__)

ExpenseListener = Callable[[list[Expense]], None]


class ExpenseStore:
    """
    Owner of the expenses slot.

    New records are prepended (most recent capture first). Display
    ordering is the Date-Filter View's job, not the store's.
    """

    def __init__(
        self,
        storage: LocalStorageInterface,
        wallets: WalletRegistry,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._wallets = wallets
        self._audit_logger = audit_logger or AuditLogger()
        self._listeners: list[ExpenseListener] = []
        self._expenses: list[Expense] = self._load()

    def _load(self) -> list[Expense]:
        payload = self._storage.read(Slot.EXPENSES)
        if not isinstance(payload, list):
            return []

        expenses = []
        for item in payload:
            try:
                expenses.append(Expense.model_validate(item))
            except ValidationError as e:
                logger.warning("expense_record_skipped", error=str(e))
        return expenses

    def _commit(self, expenses: list[Expense]) -> None:
        """Persist, then publish. A failed write raises StorageError."""
        self._storage.write(
            Slot.EXPENSES,
            [expense.model_dump(mode="json") for expense in expenses],
        )
        self._expenses = expenses
        for listener in list(self._listeners):
            listener(list(expenses))

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def expenses(self) -> list[Expense]:
        """The canonical collection (a copy)."""
        return list(self._expenses)

    @property
    def is_empty(self) -> bool:
        return not self._expenses

    def __len__(self) -> int:
        return len(self._expenses)

    def get(self, expense_id: str) -> Optional[Expense]:
        for expense in self._expenses:
            if expense.id == expense_id:
                return expense
        return None

    def subscribe(self, listener: ExpenseListener) -> Callable[[], None]:
        """
        Call listener with the committed collection after every mutation.

        Returns a function that unsubscribes.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def insert_many(
        self,
        items: Iterable[NewExpense],
        source: CaptureSource = CaptureSource.MANUAL,
        correlation_id: Optional[UUID] = None,
    ) -> list[Expense]:
        """
        Insert new expenses at the front of the collection.

        Each item gets a fresh id and creation time; a missing or unknown
        wallet id becomes the default wallet. Items with an amount of zero
        or less are dropped.

        Returns:
            The created records, in input order
        """
        created = []
        for item in items:
            if item.amount <= 0:
                logger.warning("non_positive_amount_dropped", amount=str(item.amount))
                continue
            created.append(
                Expense.from_new(item, wallet_id=self._wallets.resolve_id(item.wallet_id))
            )

        if not created:
            return []

        self._commit(created + self._expenses)
        self._audit_logger.log(
            AuditEventBuilder.expenses_added(
                [expense.id for expense in created],
                source.value,
                correlation_id,
            )
        )
        return created

    def insert(
        self,
        item: NewExpense,
        source: CaptureSource = CaptureSource.MANUAL,
    ) -> Optional[Expense]:
        """Insert one expense. Returns None if it was dropped."""
        created = self.insert_many([item], source=source)
        return created[0] if created else None

    def update(self, expense: Expense) -> bool:
        """
        Replace the record carrying expense.id.

        Returns:
            False (and writes nothing) when no record has that id
        """
        for index, current in enumerate(self._expenses):
            if current.id == expense.id:
                updated = list(self._expenses)
                updated[index] = expense
                self._commit(updated)
                self._audit_logger.log(AuditEventBuilder.expense_updated(expense.id))
                return True
        return False

    def remove(self, expense_id: str) -> bool:
        """
        Delete the record with expense_id.

        Returns:
            False (and writes nothing) when no record has that id
        """
        remaining = [expense for expense in self._expenses if expense.id != expense_id]
        if len(remaining) == len(self._expenses):
            return False

        self._commit(remaining)
        self._audit_logger.log(AuditEventBuilder.expense_deleted(expense_id))
        return True

    def replace_all(self, expenses: Iterable[Expense]) -> None:
        """Commit a whole new collection (used by reconciliation)."""
        self._commit(list(expenses))
