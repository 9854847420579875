"""
Recurrence Models

A recurrence rule says how often a template repeats and until when.
Rules are immutable values; expanding one into dates is the job of
RecurrenceExpander.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from finance_engine.dates import DateLike


class RecurrenceKind(str, Enum):
    """How often an expense repeats."""
    NONE = "none"            # One-off expense
    DAILY = "daily"
    WEEKDAYS = "weekdays"    # Monday to Friday
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    CUSTOM = "custom"        # Every custom_interval_days days


class RecurrenceRule(BaseModel):
    """
    Immutable recurrence rule.

    A rule of kind NONE never produces occurrences, whatever the other
    fields say. end_date is an exclusive upper bound.
    """
    model_config = ConfigDict(frozen=True)

    kind: RecurrenceKind = Field(
        default=RecurrenceKind.NONE,
        description="Repetition kind"
    )
    custom_interval_days: Optional[int] = Field(
        default=None,
        description="Step in days, only read when kind is CUSTOM"
    )
    end_date: Optional[DateLike] = Field(
        default=None,
        description="Exclusive upper bound for occurrences"
    )

    @classmethod
    def one_time(cls) -> "RecurrenceRule":
        return cls(kind=RecurrenceKind.NONE)

    @classmethod
    def every_n_days(
        cls,
        days: int,
        end_date: Optional[DateLike] = None,
    ) -> "RecurrenceRule":
        return cls(
            kind=RecurrenceKind.CUSTOM,
            custom_interval_days=days,
            end_date=end_date,
        )

    @property
    def is_recurring(self) -> bool:
        return self.kind != RecurrenceKind.NONE

    @property
    def has_valid_interval(self) -> bool:
        """False only for a CUSTOM rule without a positive interval."""
        if self.kind != RecurrenceKind.CUSTOM:
            return True
        return self.custom_interval_days is not None and self.custom_interval_days > 0

    def with_end_date(self, end_date: Optional[DateLike]) -> "RecurrenceRule":
        """Return a copy of this rule ending at end_date."""
        return RecurrenceRule(
            kind=self.kind,
            custom_interval_days=self.custom_interval_days,
            end_date=end_date,
        )

    def with_kind(self, kind: RecurrenceKind) -> "RecurrenceRule":
        """Return a copy of this rule with a different repetition kind."""
        return RecurrenceRule(
            kind=kind,
            custom_interval_days=self.custom_interval_days,
            end_date=self.end_date,
        )
