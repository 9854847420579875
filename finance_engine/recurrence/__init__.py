"""Recurrence expansion and instance generation."""

from finance_engine.recurrence.expander import RecurrenceExpander
from finance_engine.recurrence.instances import InstanceGenerator, exclude_existing

__all__ = ["InstanceGenerator", "RecurrenceExpander", "exclude_existing"]
