"""
Reconciliation (Merge) Rules

DESIGN DECISION: The merge is a PURE function. It never touches storage
or the network, so every dedup rule can be pinned down in tests. The
SyncEngine wraps it with fetching, persistence and failure handling.

DEDUP KEY: a remote row is "already here" if SOME record of the ORIGINAL
local collection has
  (a) the same calendar day (date-string prefix before 'T'),
  (b) an amount within the tolerance (strictly less than 0.01), and
  (c) the same description, compared case-insensitively.
Category and wallet are not part of the key. Rows merged earlier in the
same pass are NOT used for dedup.
"""

import datetime as dt
from decimal import Decimal
from typing import Iterable, Sequence
from uuid import uuid4

from snapspend.models.expense import (
    Expense,
    RemoteExpense,
    date_prefix,
    now_millis,
)
from snapspend.models.results import MergeResult
from snapspend.store.wallets import WalletRegistry


DEFAULT_AMOUNT_TOLERANCE = Decimal("0.01")


def is_duplicate(
    candidate: RemoteExpense,
    local: Iterable[Expense],
    tolerance: Decimal = DEFAULT_AMOUNT_TOLERANCE,
) -> bool:
    """Check the dedup key of one remote row against local records."""
    day = date_prefix(candidate.date)
    description = (candidate.description or "").lower()

    for expense in local:
        if (
            date_prefix(expense.date) == day
            and abs(expense.amount - candidate.amount) < tolerance
            and (expense.description or "").lower() == description
        ):
            return True
    return False


def sort_newest_first(expenses: Iterable[Expense]) -> list[Expense]:
    """Sort by date descending; undated records go last in their prior order."""
    def sort_key(expense: Expense) -> tuple[bool, dt.datetime]:
        moment = expense.timestamp
        return moment is not None, moment or dt.datetime.min

    return sorted(expenses, key=sort_key, reverse=True)


def to_expense(candidate: RemoteExpense, wallet_id: str) -> Expense:
    """Materialize a remote row as a new local record."""
    return Expense(
        id=str(uuid4()),
        amount=candidate.amount,
        category=candidate.category,
        description=candidate.description,
        date=candidate.date,
        wallet_id=wallet_id,
        created_at=now_millis(),
    )


def reconcile(
    local: Sequence[Expense],
    remote: Iterable[RemoteExpense],
    wallets: WalletRegistry,
    tolerance: Decimal = DEFAULT_AMOUNT_TOLERANCE,
) -> MergeResult:
    """
    Fold a remote snapshot into the local collection.

    Args:
        local: The current canonical collection
        remote: Remote rows, in sheet order
        wallets: Registry used to resolve each row's wallet name
        tolerance: Amount difference below which amounts are equal

    Returns:
        MergeResult. When nothing was added, expenses is the local
        collection in its original order.
    """
    original = list(local)
    merged = list(original)
    added_count = 0

    for candidate in remote:
        if is_duplicate(candidate, original, tolerance):
            continue
        wallet = wallets.resolve_by_name(candidate.wallet_name)
        merged.append(to_expense(candidate, wallet.id))
        added_count += 1

    if added_count == 0:
        return MergeResult(expenses=original, added_count=0)

    return MergeResult(expenses=sort_newest_first(merged), added_count=added_count)
