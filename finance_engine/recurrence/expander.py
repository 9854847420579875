"""
Recurrence Expansion

Turns a RecurrenceRule into the ordered dates it occurs on inside a window.

GUARANTEES:
- Dates are strictly increasing
- Every date lies in [window_start, window_end] and before rule.end_date
- A single expansion never returns more than MAX_OCCURRENCES dates

The k-th occurrence is always computed as origin + k steps, never by
stepping from the previous date, so a rule starting on the 31st stays on
the last day of short months without drifting to the 28th/29th/30th.
"""

from datetime import datetime
from typing import Iterator, Optional

from finance_engine.audit import EngineAuditLogger, get_audit_logger
from finance_engine.config import MAX_OCCURRENCES
from finance_engine.dates import (
    CalendarContext,
    DateLike,
    DateUnit,
    add_period,
    days_between,
    is_weekend,
    months_between,
    to_datetime,
)
from finance_engine.models.audit import EngineEventBuilder
from finance_engine.models.recurrence import RecurrenceKind, RecurrenceRule


# kind -> (unit, units per step)
_FIXED_STEPS: dict[RecurrenceKind, tuple[DateUnit, int]] = {
    RecurrenceKind.DAILY: (DateUnit.DAY, 1),
    RecurrenceKind.WEEKDAYS: (DateUnit.DAY, 1),
    RecurrenceKind.WEEKLY: (DateUnit.WEEK, 1),
    RecurrenceKind.BIWEEKLY: (DateUnit.WEEK, 2),
    RecurrenceKind.MONTHLY: (DateUnit.MONTH, 1),
    RecurrenceKind.QUARTERLY: (DateUnit.MONTH, 3),
    RecurrenceKind.YEARLY: (DateUnit.YEAR, 1),
}


class RecurrenceExpander:
    """
    Expands recurrence rules into occurrence dates.

    Stateless apart from its calendar and logger; safe to share between threads.
    """

    def __init__(
        self,
        calendar: Optional[CalendarContext] = None,
        audit_logger: Optional[EngineAuditLogger] = None,
    ):
        """
        Initialize expander.

        Args:
            calendar: Calendar/timezone datetimes are evaluated in.
                      Defaults to the configured timezone.
            audit_logger: Event logger. Defaults to the shared local logger.
        """
        self._calendar = calendar or CalendarContext.from_settings()
        self._audit = audit_logger or get_audit_logger()

    @property
    def calendar(self) -> CalendarContext:
        return self._calendar

    def expand(
        self,
        rule: RecurrenceRule,
        origin: DateLike,
        window_start: DateLike,
        window_end: DateLike,
    ) -> list[DateLike]:
        """
        Return the occurrences of rule inside [window_start, window_end].

        The walk starts at origin itself, so origin is included when it is
        inside the window. Callers that only want future occurrences drop
        the first element.
        """
        if not self._can_expand(rule, origin):
            return []

        start_key = self._key(window_start)
        end_key = self._key(window_end)
        if start_key > end_key:
            return []

        occurrences: list[DateLike] = []
        for current in self._walk(rule, origin, window_start):
            current_key = self._key(current)
            if current_key > end_key:
                break
            if current_key < start_key:
                continue
            occurrences.append(current)
            if len(occurrences) >= MAX_OCCURRENCES:
                self._audit.log(
                    EngineEventBuilder.occurrence_cap_reached(rule.kind.value, MAX_OCCURRENCES)
                )
                break

        self._audit.log(
            EngineEventBuilder.occurrences_expanded(rule.kind.value, len(occurrences))
        )
        return occurrences

    def next_occurrence(
        self,
        rule: RecurrenceRule,
        origin: DateLike,
        after: DateLike,
    ) -> Optional[DateLike]:
        """First occurrence strictly after `after`, or None if the rule has ended."""
        if not self._can_expand(rule, origin):
            return None

        after_key = self._key(after)
        for steps, current in enumerate(self._walk(rule, origin, after)):
            if self._key(current) > after_key:
                return current
            if steps >= MAX_OCCURRENCES:
                break
        return None

    def _can_expand(self, rule: RecurrenceRule, origin: DateLike) -> bool:
        if not rule.is_recurring:
            return False
        if not rule.has_valid_interval:
            self._audit.log(
                EngineEventBuilder.invalid_recurrence_interval(rule.custom_interval_days)
            )
            return False
        if rule.end_date is not None and self._key(rule.end_date) <= self._key(origin):
            return False
        return True

    def _walk(
        self,
        rule: RecurrenceRule,
        origin: DateLike,
        not_before: DateLike,
    ) -> Iterator[DateLike]:
        """
        Yield origin + k steps for increasing k, stopping at rule.end_date.

        Starts at a k no later than the first occurrence on or after
        not_before. Unbounded when the rule has no end date.
        """
        unit, count = self._step(rule)
        end_key = self._key(rule.end_date) if rule.end_date is not None else None
        k = self._first_index(origin, unit, count, not_before)

        while True:
            current = add_period(origin, unit, k * count, self._calendar)
            if end_key is not None and self._key(current) >= end_key:
                return
            k += 1
            if rule.kind == RecurrenceKind.WEEKDAYS and is_weekend(current, self._calendar):
                continue
            yield current

    def _step(self, rule: RecurrenceRule) -> tuple[DateUnit, int]:
        if rule.kind == RecurrenceKind.CUSTOM:
            return DateUnit.DAY, rule.custom_interval_days
        return _FIXED_STEPS[rule.kind]

    def _first_index(
        self,
        origin: DateLike,
        unit: DateUnit,
        count: int,
        not_before: DateLike,
    ) -> int:
        """
        A step index k with origin + k steps <= the first occurrence >= not_before.

        Lets windows far after the origin skip straight to the right area
        instead of walking every step from the origin.
        """
        if self._key(not_before) <= self._key(origin):
            return 0

        if unit in (DateUnit.DAY, DateUnit.WEEK):
            step_days = count * (7 if unit == DateUnit.WEEK else 1)
            elapsed = days_between(origin, not_before, self._calendar)
            return max(0, elapsed // step_days - 1)

        step_months = count * (12 if unit == DateUnit.YEAR else 1)
        elapsed = months_between(origin, not_before, self._calendar)
        return max(0, elapsed // step_months - 1)

    def _key(self, value: DateLike) -> datetime:
        return to_datetime(value, self._calendar)
