"""
Expense Models

An ExpenseTemplate is the record the user created (the "origin").
ExpenseInstance values are the concrete occurrences generated from it.

DESIGN DECISION: Both models are frozen. Changes go through the explicit
with_* methods, which return a new, re-validated value.
"""

from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finance_engine.models.recurrence import DateLike, RecurrenceRule


DESCRIPTION_MAX_LENGTH = 500


class ExpenseStatus(str, Enum):
    """
    Expense lifecycle status.

    Generated instances always start as PENDING; only the user confirms.
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class ExpenseFields(BaseModel):
    """Fields shared by templates and generated instances."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    amount: float = Field(
        ...,
        gt=0,
        description="Expense amount in `currency`"
    )
    currency: str = Field(
        ...,
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code"
    )
    category_id: str = Field(
        ...,
        min_length=1,
        description="Category identifier"
    )
    subcategory_id: Optional[str] = Field(
        default=None,
        description="Subcategory identifier"
    )
    description: str = Field(
        default="",
        max_length=DESCRIPTION_MAX_LENGTH,
        description="Free-text description"
    )
    recurrence_rule: RecurrenceRule = Field(
        default_factory=RecurrenceRule,
        description="How the expense repeats"
    )
    tags: tuple[str, ...] = Field(
        default=(),
        description="Arbitrary user tags"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="User notes"
    )
    status: ExpenseStatus = Field(
        default=ExpenseStatus.PENDING,
        description="Lifecycle status"
    )
    exchange_rate: Optional[float] = Field(
        default=None,
        gt=0,
        description="Rate converting `currency` into the user's default currency"
    )

    @field_validator('currency')
    @classmethod
    def uppercase_currency(cls, v: str) -> str:
        return v.upper()

    def amount_in(self, default_currency: str) -> float:
        """
        Amount expressed in default_currency.

        Without an exchange rate the amount is returned unchanged.
        """
        if self.currency == default_currency.upper() or self.exchange_rate is None:
            return self.amount
        return self.amount * self.exchange_rate

    def _replace(self, **changes: Any):
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)


class ExpenseTemplate(ExpenseFields):
    """
    The origin record a recurring expense is generated from.

    The engine never mutates a template.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Template identity"
    )
    origin_date: DateLike = Field(
        ...,
        description="Date of the original expense"
    )

    def with_amount(self, amount: float) -> "ExpenseTemplate":
        return self._replace(amount=amount)

    def with_description(self, description: str) -> "ExpenseTemplate":
        return self._replace(description=description)

    def with_status(self, status: ExpenseStatus) -> "ExpenseTemplate":
        return self._replace(status=status)

    def with_origin_date(self, origin_date: DateLike) -> "ExpenseTemplate":
        return self._replace(origin_date=origin_date)

    def with_recurrence_rule(self, rule: RecurrenceRule) -> "ExpenseTemplate":
        return self._replace(recurrence_rule=rule)


class ExpenseInstance(ExpenseFields):
    """A concrete occurrence generated from a template."""

    id: UUID = Field(
        default_factory=uuid4,
        description="Fresh identity, never the template's"
    )
    origin_id: UUID = Field(
        ...,
        description="Identity of the template this instance came from"
    )
    date: DateLike = Field(
        ...,
        description="Occurrence date"
    )

    @property
    def dedupe_key(self) -> tuple[UUID, DateLike]:
        """(origin_id, date): identifies an occurrence across regenerations."""
        return (self.origin_id, self.date)

    def with_status(self, status: ExpenseStatus) -> "ExpenseInstance":
        return self._replace(status=status)

    def with_amount(self, amount: float) -> "ExpenseInstance":
        return self._replace(amount=amount)
