"""
Date-Filter View Engine

DESIGN DECISION: The view is a PURE function of
(collection, filter, week start, today). It owns no state, never
mutates its input, and is recomputed on every read. Nothing here can
fail for a record that is already in the store.

Records whose date cannot be parsed are left out of every view,
including ALL, so the descending sort never has to compare them.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

from snapspend.models.expense import Expense
from snapspend.models.preferences import DateFilter, DateFilterType, WeekStart


def week_start(today: date, week_start_day: Union[WeekStart, str]) -> date:
    """
    First day of the week containing today.

    Distance from the week start is the day-of-week (Sunday = 0) for
    Sunday-start weeks, and (Sunday -> 6, else day-of-week - 1) for
    Monday-start weeks.
    """
    day_of_week = (today.weekday() + 1) % 7
    if WeekStart(week_start_day) == WeekStart.MONDAY:
        distance = 6 if day_of_week == 0 else day_of_week - 1
    else:
        distance = day_of_week
    return today - timedelta(days=distance)


def previous_month(today: date) -> tuple[int, int]:
    """(year, month) of the calendar month before today's."""
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


def window_for(
    date_filter: DateFilter,
    week_start_day: Union[WeekStart, str],
    today: date,
) -> Optional[tuple[date, date]]:
    """
    Inclusive day window for day-granular filters.

    Returns None for filters that are not a day range (ALL, months,
    and CUSTOM with a missing bound).
    """
    filter_type = date_filter.type

    if filter_type == DateFilterType.TODAY:
        return today, today

    if filter_type == DateFilterType.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday

    if filter_type == DateFilterType.THIS_WEEK:
        return week_start(today, week_start_day), today

    if filter_type == DateFilterType.LAST_WEEK:
        start_of_this_week = week_start(today, week_start_day)
        return (
            start_of_this_week - timedelta(days=7),
            start_of_this_week - timedelta(days=1),
        )

    if filter_type == DateFilterType.CUSTOM:
        if date_filter.start_date and date_filter.end_date:
            return date_filter.start_date, date_filter.end_date
        return None

    return None


def _matches(
    moment: datetime,
    date_filter: DateFilter,
    week_start_day: Union[WeekStart, str],
    today: date,
) -> bool:
    filter_type = date_filter.type

    if filter_type == DateFilterType.THIS_MONTH:
        return (moment.year, moment.month) == (today.year, today.month)

    if filter_type == DateFilterType.LAST_MONTH:
        return (moment.year, moment.month) == previous_month(today)

    window = window_for(date_filter, week_start_day, today)
    if window is None:
        # ALL, or CUSTOM missing a bound
        return True

    start, end = window
    return start <= moment.date() <= end


def filter_expenses(
    expenses: Iterable[Expense],
    date_filter: Optional[DateFilter] = None,
    week_start_day: Union[WeekStart, str] = WeekStart.SUNDAY,
    today: Optional[date] = None,
) -> list[Expense]:
    """
    Build the ordered view of a collection for one filter.

    Args:
        expenses: The canonical collection (not modified)
        date_filter: Window to apply; None means ALL
        week_start_day: Convention for this-week / last-week
        today: Reference day; defaults to date.today()

    Returns:
        Matching records, most recent date first
    """
    date_filter = date_filter or DateFilter()
    today = today or date.today()

    dated = []
    for expense in expenses:
        moment = expense.timestamp
        if moment is None:
            continue
        if _matches(moment, date_filter, week_start_day, today):
            dated.append((moment, expense))

    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [expense for _, expense in dated]
