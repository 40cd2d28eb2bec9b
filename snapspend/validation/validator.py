"""
Capture Candidate Screening

DESIGN DECISION: Every capture pathway (voice, photo, text) returns a
list of PROPOSED expenses from the extraction service. Before anything
reaches the Expense Store the candidates pass through one screening
step:

- Candidates with an amount of zero or less are DROPPED. The extraction
  prompt uses amount 0 to mean "nothing detected".
- Missing fields get defaults: category "Other", a description that
  names the capture source, and today's date.
- The approximate wallet name is resolved against the registry.

Screening never raises and never touches storage. It reports what it
dropped so the caller can decide which notice to show.
"""

from datetime import date
from typing import Iterable, Optional

import structlog

from snapspend.models.expense import (
    DEFAULT_CATEGORY,
    CaptureSource,
    NewExpense,
    ParsedExpense,
    parse_timestamp,
)
from snapspend.models.results import ScreeningResult, ValidationIssue
from snapspend.store.wallets import WalletRegistry


logger = structlog.get_logger(__name__)


class CandidateScreener:
    """Turns extraction candidates into insertable expenses."""

    def screen(
        self,
        candidates: Iterable[ParsedExpense],
        source: CaptureSource,
        wallets: WalletRegistry,
        today: Optional[date] = None,
    ) -> ScreeningResult:
        """
        Screen extraction candidates.

        Args:
            candidates: Parsed candidates, in extraction order
            source: Capture pathway, used for the default description
            wallets: Registry used to resolve wallet names
            today: Date used for candidates without one

        Returns:
            ScreeningResult with accepted expenses and issues found
        """
        today = today or date.today()
        accepted: list[NewExpense] = []
        issues: list[ValidationIssue] = []

        for index, candidate in enumerate(candidates):
            if candidate.amount <= 0:
                issues.append(ValidationIssue(
                    index=index,
                    field="amount",
                    issue_type="non_positive_amount",
                    message=f"Amount {candidate.amount} is not a detected expense",
                    severity="error",
                ))
                continue

            expense_date = candidate.date or today.isoformat()
            if parse_timestamp(expense_date) is None:
                # Kept as written; date views will not show it
                issues.append(ValidationIssue(
                    index=index,
                    field="date",
                    issue_type="unparseable_date",
                    message=f"Date '{expense_date}' could not be read",
                    severity="warning",
                ))

            accepted.append(NewExpense(
                amount=candidate.amount,
                category=candidate.category or DEFAULT_CATEGORY,
                description=candidate.description or source.placeholder_description,
                date=expense_date,
                wallet_id=wallets.resolve_by_name(candidate.wallet).id,
            ))

        if issues:
            logger.info(
                "candidates_screened",
                source=source.value,
                accepted=len(accepted),
                issues=len(issues),
            )

        return ScreeningResult(accepted=accepted, issues=issues)
