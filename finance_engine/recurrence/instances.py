"""
Instance Generation

Builds the concrete ExpenseInstance records a recurring template implies.

DESIGN DECISION: Index 0 of the expansion is the template itself and is
never turned into an instance. Generated instances are always PENDING;
confirming them is the user's job.

The generator is stateless. Avoiding duplicates against instances the
caller already persisted is done with exclude_existing() on the
(origin_id, date) key.
"""

from collections.abc import Iterable
from typing import Optional
from uuid import UUID

from finance_engine.audit import EngineAuditLogger, get_audit_logger
from finance_engine.config import DEFAULT_MAX_INSTANCES, get_settings
from finance_engine.dates import DateLike
from finance_engine.models.audit import EngineEventBuilder
from finance_engine.models.expense import (
    DESCRIPTION_MAX_LENGTH,
    ExpenseInstance,
    ExpenseStatus,
    ExpenseTemplate,
)
from finance_engine.recurrence.expander import RecurrenceExpander


class InstanceGenerator:
    """
    Generates expense instances from a template's recurrence rule.
    """

    def __init__(
        self,
        expander: Optional[RecurrenceExpander] = None,
        audit_logger: Optional[EngineAuditLogger] = None,
        recurring_marker: Optional[str] = None,
    ):
        """
        Initialize generator.

        Args:
            expander: Expander used for the occurrence dates.
            audit_logger: Event logger. Defaults to the shared local logger.
            recurring_marker: Suffix for generated descriptions.
                              Defaults to the configured marker.
        """
        self._audit = audit_logger or get_audit_logger()
        self._expander = expander or RecurrenceExpander(audit_logger=self._audit)
        self._marker = recurring_marker or get_settings().recurring_marker

    def generate(
        self,
        template: ExpenseTemplate,
        window_end: DateLike,
        max_occurrences: int = DEFAULT_MAX_INSTANCES,
    ) -> list[ExpenseInstance]:
        """
        Generate the instances of template up to window_end.

        Returns at most max_occurrences instances in ascending date order.
        Two calls with the same inputs give the same dates and fields; only
        the instance ids differ.
        """
        if max_occurrences < 0:
            raise ValueError("max_occurrences cannot be negative")

        dates = self._expander.expand(
            template.recurrence_rule,
            origin=template.origin_date,
            window_start=template.origin_date,
            window_end=window_end,
        )
        # The first date is the template's own occurrence. A weekdays rule
        # whose origin falls on a weekend has no such entry.
        future_dates = dates[1:] if dates and dates[0] == template.origin_date else dates
        capped = len(future_dates) > max_occurrences
        future_dates = future_dates[:max_occurrences]

        instances = [self._build_instance(template, d) for d in future_dates]

        self._audit.log(
            EngineEventBuilder.instances_generated(template.id, len(instances), capped)
        )
        return instances

    def _build_instance(self, template: ExpenseTemplate, occurrence: DateLike) -> ExpenseInstance:
        return ExpenseInstance(
            origin_id=template.id,
            date=occurrence,
            amount=template.amount,
            currency=template.currency,
            category_id=template.category_id,
            subcategory_id=template.subcategory_id,
            description=self._mark(template.description),
            recurrence_rule=template.recurrence_rule,
            tags=template.tags,
            notes=template.notes,
            status=ExpenseStatus.PENDING,
            exchange_rate=template.exchange_rate,
        )

    def _mark(self, description: str) -> str:
        """Append the marker, shortening the text so the result stays within the length limit."""
        if not description:
            return self._marker
        room = DESCRIPTION_MAX_LENGTH - len(self._marker) - 1
        return f"{description[:room].rstrip()} {self._marker}"


def exclude_existing(
    instances: Iterable[ExpenseInstance],
    existing_keys: Iterable[tuple[UUID, DateLike]],
) -> list[ExpenseInstance]:
    """
    Drop instances whose (origin_id, date) was already materialized.

    existing_keys typically comes from the caller's store.
    """
    seen = set(existing_keys)
    return [instance for instance in instances if instance.dedupe_key not in seen]
