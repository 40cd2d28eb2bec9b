"""
Spending Summaries

Deterministic aggregation over an (already filtered) expense view:
totals, per-category and per-wallet breakdowns, and progress against
the monthly spending limit.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional

from snapspend.models.expense import Expense
from snapspend.models.results import GroupTotal, SpendingSummary
from snapspend.store.wallets import WalletRegistry


def _grouped(totals: dict[str, Decimal], counts: dict[str, int]) -> list[GroupTotal]:
    groups = [
        GroupTotal(key=key, total=total, count=counts[key])
        for key, total in totals.items()
    ]
    # Largest first; name breaks ties so output is stable
    groups.sort(key=lambda group: (-group.total, group.key))
    return groups


def summarize(
    expenses: Iterable[Expense],
    spending_limit: Decimal = Decimal("0"),
    wallets: Optional[WalletRegistry] = None,
) -> SpendingSummary:
    """
    Aggregate a view.

    Args:
        expenses: Records to aggregate (usually a filtered view)
        spending_limit: Monthly limit; 0 disables progress tracking
        wallets: When given, wallet groups are keyed by display name
                 instead of wallet id

    Returns:
        SpendingSummary with limit_progress capped at 100
    """
    total = Decimal("0")
    count = 0
    category_totals: dict[str, Decimal] = defaultdict(Decimal)
    category_counts: dict[str, int] = defaultdict(int)
    wallet_totals: dict[str, Decimal] = defaultdict(Decimal)
    wallet_counts: dict[str, int] = defaultdict(int)

    for expense in expenses:
        total += expense.amount
        count += 1

        category_totals[expense.category] += expense.amount
        category_counts[expense.category] += 1

        if wallets is not None:
            wallet_key = wallets.name_for(expense.wallet_id)
        else:
            wallet_key = expense.wallet_id or ""
        wallet_totals[wallet_key] += expense.amount
        wallet_counts[wallet_key] += 1

    progress = 0.0
    if spending_limit > 0:
        progress = min(float(total / spending_limit * 100), 100.0)

    return SpendingSummary(
        total=total,
        count=count,
        by_category=_grouped(category_totals, category_counts),
        by_wallet=_grouped(wallet_totals, wallet_counts),
        spending_limit=spending_limit,
        limit_progress=progress,
    )
