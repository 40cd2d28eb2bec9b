"""AI agents package."""

from snapspend.agents.ai_agents import (
    ExpenseExtractionAgent,
    ExtractionError,
    expense_lines,
    parse_candidates,
)

__all__ = [
    "ExpenseExtractionAgent",
    "ExtractionError",
    "expense_lines",
    "parse_candidates",
]
