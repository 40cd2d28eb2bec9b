"""
User Preference Models

The single settings record the user edits, and the transient
DateFilter used to window the expense list.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Language(str, Enum):
    ENGLISH = "en"
    SPANISH = "es"
    FRENCH = "fr"
    BENGALI = "bn"
    HINDI = "hi"


class WeekStart(str, Enum):
    """First day of the week for this-week / last-week windows."""
    SUNDAY = "sunday"
    MONDAY = "monday"


class UserSettings(BaseModel):
    """
    The user's settings record.

    Persisted as a whole on every change. No relational invariants.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    currency: str = Field(
        default="BDT",
        min_length=1,
        max_length=10,
        description="Display currency code (no conversion is performed)"
    )
    theme: Theme = Field(default=Theme.LIGHT)
    show_camera: bool = Field(
        default=False,
        description="Show the photo capture method"
    )
    show_manual_entry: bool = Field(
        default=True,
        description="Show the manual entry form"
    )
    spending_limit: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Monthly spending limit. 0 disables it."
    )
    travel_mode: bool = Field(default=False)
    language: Language = Field(default=Language.ENGLISH)
    week_start_day: WeekStart = Field(default=WeekStart.SUNDAY)

    @property
    def has_spending_limit(self) -> bool:
        return self.spending_limit > 0


class DateFilterType(str, Enum):
    """Time windows the expense list can be narrowed to."""
    ALL = "all"
    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "this_week"
    LAST_WEEK = "last_week"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    CUSTOM = "custom"


class DateFilter(BaseModel):
    """
    A transient, never-persisted view definition.

    start_date / end_date are only read for CUSTOM; a custom filter with
    either bound missing behaves like ALL.
    """
    model_config = ConfigDict(frozen=True)

    type: DateFilterType = Field(default=DateFilterType.ALL)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_range(self) -> 'DateFilter':
        """Validate the custom range order."""
        if self.start_date and self.end_date:
            if self.end_date < self.start_date:
                raise ValueError("Filter end date cannot be before start date")
        return self
