"""Derived views over the expense collection."""

from snapspend.queries.date_filter import (
    filter_expenses,
    previous_month,
    week_start,
    window_for,
)
from snapspend.queries.summary import summarize

__all__ = [
    "filter_expenses",
    "previous_month",
    "summarize",
    "week_start",
    "window_for",
]
