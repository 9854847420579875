"""
Financial Plan Models

Plans, monthly breakdowns, projection rows and the small result values
returned by the planning code. All models are immutable.

Rates are decimals (0.05 = 5%); percentages are 0-100 floats.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import NamedTuple, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from finance_engine.dates import (
    CalendarContext,
    DateLike,
    local_date,
    months_between,
    to_datetime,
)


# =============================================================================
# ENUMS
# =============================================================================

class InterestKind(str, Enum):
    """How savings grow over the plan."""
    SIMPLE = "simple"        # P * (1 + r * t)
    COMPOUND = "compound"    # P * (1 + r / n) ^ (n * t)


class PlanStatus(str, Enum):
    """
    Where a plan stands relative to now.

    Always computed fresh from the dates and the is_active flag; never stored.
    """
    UPCOMING = "upcoming"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class AmortizationOutcome(str, Enum):
    """How the amortization loop ended."""
    PAID_OFF = "paid_off"
    INSUFFICIENT_PAYMENT = "insufficient_payment"   # Payment does not cover interest
    CAP_REACHED = "cap_reached"                     # Iteration cap hit before payoff


class BudgetBucket(str, Enum):
    """Needs / wants / savings split used by budget rules."""
    NEEDS = "needs"
    WANTS = "wants"
    SAVINGS = "savings"


class RecommendationKind(str, Enum):
    REDUCE_NEEDS = "reduce_needs"
    REDUCE_WANTS = "reduce_wants"
    INCREASE_SAVINGS = "increase_savings"


# =============================================================================
# PLAN
# =============================================================================

class PlanParameters(BaseModel):
    """
    A financial plan as entered by the user.

    start_date must be before end_date. Category allocations are percents
    of the monthly budget and may not add up to more than 100.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Plan identity"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Plan name"
    )
    start_date: DateLike
    end_date: DateLike

    total_income: float = Field(
        ...,
        ge=0,
        description="Income expected over the whole plan"
    )
    savings_goal: float = Field(
        default=0.0,
        ge=0,
        description="Amount to have saved by end_date"
    )
    emergency_fund_goal: float = Field(
        default=0.0,
        description="Target size of the emergency fund"
    )

    interest_kind: InterestKind = Field(
        default=InterestKind.COMPOUND,
        description="Simple or compound growth"
    )
    annual_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Annual interest rate as a decimal"
    )
    compounding_frequency: int = Field(
        default=12,
        ge=1,
        description="Compounding periods per year"
    )
    category_allocations: dict[str, float] = Field(
        default_factory=dict,
        description="Category id -> percent of the monthly budget"
    )

    monthly_expenses: float = Field(
        default=0.0,
        ge=0,
        description="Expected expenses per month before inflation"
    )
    inflation_rate: float = Field(
        default=0.0,
        ge=-0.5,
        le=1.0,
        description="Annual inflation applied to expenses, as a decimal"
    )
    is_active: bool = Field(
        default=True,
        description="False while the user has paused the plan"
    )

    @field_validator('category_allocations')
    @classmethod
    def validate_allocations(cls, v: dict[str, float]) -> dict[str, float]:
        for category, percent in v.items():
            if percent < 0:
                raise ValueError(f"Allocation for {category} cannot be negative")
        if sum(v.values()) > 100.0 + 1e-9:
            raise ValueError("Category allocations cannot exceed 100%")
        return v

    @model_validator(mode='after')
    def validate_dates(self) -> 'PlanParameters':
        if to_datetime(self.start_date) >= to_datetime(self.end_date):
            raise ValueError("Plan start date must be before end date")
        return self

    def duration_in_months(self, calendar: Optional[CalendarContext] = None) -> int:
        """Whole months between start_date and end_date."""
        return months_between(self.start_date, self.end_date, calendar)

    def monthly_income(self, calendar: Optional[CalendarContext] = None) -> float:
        """Total income spread evenly over the plan's months."""
        return self.total_income / max(self.duration_in_months(calendar), 1)

    def with_active(self, is_active: bool) -> "PlanParameters":
        return self.model_copy(update={"is_active": is_active})

    def with_dates(self, start_date: DateLike, end_date: DateLike) -> "PlanParameters":
        data = self.model_dump()
        data.update(start_date=start_date, end_date=end_date)
        return PlanParameters.model_validate(data)


# =============================================================================
# MONTHLY BREAKDOWN
# =============================================================================

class CategoryFigures(BaseModel):
    """Planned and actual spending for one category in one month."""
    model_config = ConfigDict(frozen=True)

    planned: float = Field(default=0.0, ge=0)
    actual: float = Field(default=0.0, ge=0)

    @property
    def variance(self) -> float:
        """Positive when under budget."""
        return self.planned - self.actual


class MonthlyBreakdown(BaseModel):
    """
    Planned vs. actual figures for one calendar month of a plan.

    Created once per month in the plan's span. Actual figures arrive later
    through with_actuals / with_category_actual.
    """
    model_config = ConfigDict(frozen=True)

    plan_id: Optional[UUID] = None
    month: date = Field(
        ...,
        description="First day of the month"
    )

    planned_income: float = Field(default=0.0, ge=0)
    actual_income: float = Field(default=0.0, ge=0)
    planned_expenses: float = Field(default=0.0, ge=0)
    actual_expenses: float = Field(default=0.0, ge=0)
    planned_savings: float = Field(default=0.0, ge=0)
    actual_savings: float = Field(default=0.0)

    categories: dict[str, CategoryFigures] = Field(default_factory=dict)

    @field_validator('month', mode='before')
    @classmethod
    def first_of_month(cls, v):
        if isinstance(v, datetime):
            v = v.date()
        if isinstance(v, date):
            return v.replace(day=1)
        return v

    @property
    def savings_rate(self) -> float:
        """Actual savings as a fraction of actual income."""
        if self.actual_income > 0:
            return self.actual_savings / self.actual_income
        return 0.0

    @property
    def expense_ratio(self) -> float:
        """Actual expenses as a fraction of actual income."""
        if self.actual_income > 0:
            return self.actual_expenses / self.actual_income
        return 0.0

    def with_actuals(
        self,
        income: Optional[float] = None,
        expenses: Optional[float] = None,
        savings: Optional[float] = None,
    ) -> "MonthlyBreakdown":
        """Return a copy with whichever actual figures were given replaced."""
        data = self.model_dump()
        if income is not None:
            data["actual_income"] = income
        if expenses is not None:
            data["actual_expenses"] = expenses
        if savings is not None:
            data["actual_savings"] = savings
        return MonthlyBreakdown.model_validate(data)

    def with_category_actual(self, category: str, actual: float) -> "MonthlyBreakdown":
        """Return a copy with one category's actual spending replaced."""
        current = self.categories.get(category, CategoryFigures())
        categories = dict(self.categories)
        categories[category] = CategoryFigures(planned=current.planned, actual=actual)
        return self.model_copy(update={"categories": categories})


class BudgetRule(BaseModel):
    """Target split of income into needs / wants / savings, in percent."""
    model_config = ConfigDict(frozen=True)

    needs_target: float = Field(default=50.0, ge=0, le=100)
    wants_target: float = Field(default=30.0, ge=0, le=100)
    savings_target: float = Field(default=20.0, ge=0, le=100)


class BudgetRecommendation(BaseModel):
    """A suggested change to a needs/wants/savings split."""
    model_config = ConfigDict(frozen=True)

    kind: RecommendationKind
    priority: str = Field(
        ...,
        pattern="^(high|medium|low)$",
        description="How urgent the change is"
    )
    message: str


class BudgetAnalysis(BaseModel):
    """
    Category allocations grouped into needs / wants / savings and compared
    with a budget rule.

    Percentages are of the monthly budget; variances are absolute
    differences from the rule's targets in percentage points.
    """
    model_config = ConfigDict(frozen=True)

    total_allocated: float
    needs_percentage: float
    wants_percentage: float
    savings_percentage: float

    needs_variance: float = Field(..., ge=0)
    wants_variance: float = Field(..., ge=0)
    savings_variance: float = Field(..., ge=0)
    adherence_score: float = Field(..., ge=0, le=100)

    recommendations: tuple[BudgetRecommendation, ...] = ()


# =============================================================================
# PROJECTION RESULTS
# =============================================================================

class MonthlyProjection(BaseModel):
    """One projected month of a plan."""
    model_config = ConfigDict(frozen=True)

    month_index: int = Field(..., ge=0)
    month: DateLike
    projected_income: float
    projected_expenses: float
    net_amount: float
    interest_earned: float = 0.0
    cumulative_net: float

    @property
    def savings_rate(self) -> float:
        if self.projected_income > 0:
            return self.net_amount / self.projected_income
        return 0.0

    @property
    def expense_ratio(self) -> float:
        if self.projected_income > 0:
            return self.projected_expenses / self.projected_income
        return 0.0


class CurrentPosition(BaseModel):
    """Expected vs. actual cumulative net for a plan in progress."""
    model_config = ConfigDict(frozen=True)

    plan_id: UUID
    months_elapsed: int = Field(..., ge=0)
    expected_cumulative_net: float
    actual_cumulative_net: float
    variance: float
    is_on_track: bool


class AmortizationRow(NamedTuple):
    month: int
    payment: float
    interest: float
    principal: float
    balance: float


class AmortizationResult(NamedTuple):
    """
    (months, total_interest, outcome).

    months is only a payoff time when outcome is PAID_OFF.
    """
    months: int
    total_interest: float
    outcome: AmortizationOutcome

    @property
    def paid_off(self) -> bool:
        return self.outcome == AmortizationOutcome.PAID_OFF

    @property
    def exceeds_cap(self) -> bool:
        return self.outcome == AmortizationOutcome.CAP_REACHED


class EmergencyFundProgress(NamedTuple):
    percent: float
    remaining_amount: float


class RemainingTime(NamedTuple):
    """Calendar time left until a plan ends; all zero once it has."""
    years: int
    months: int
    days: int
    is_completed: bool


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'out_of_range', 'inconsistent')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Structural checks (required values, ranges)
    Stage 2: Semantic checks (values that are valid alone but not together)
    """

    subject: str = Field(
        ...,
        description="What was validated (e.g., 'plan', 'recurrence_rule')"
    )
    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    structure_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "error"]


def month_key(value: DateLike, calendar: Optional[CalendarContext] = None) -> date:
    """First calendar day of the month value falls in."""
    return local_date(value, calendar).replace(day=1)
