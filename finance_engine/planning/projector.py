"""
Plan Projection

Derives savings requirements, progress and month-by-month projections
from a plan's parameters.

Plan status, progress and elapsed months are recomputed from `as_of`
on every call; nothing about a plan's state is stored here.
"""

from datetime import datetime
from typing import Optional

from finance_engine.audit import EngineAuditLogger, get_audit_logger
from finance_engine.config import get_settings
from finance_engine.dates import (
    CalendarContext,
    DateLike,
    DateUnit,
    add_period,
    iter_months,
    months_between,
    to_datetime,
)
from finance_engine.models.audit import EngineEventBuilder
from finance_engine.models.plan import (
    CurrentPosition,
    EmergencyFundProgress,
    InterestKind,
    MonthlyProjection,
    PlanParameters,
    PlanStatus,
    RemainingTime,
)
from finance_engine.planning.financial_math import (
    MONTHS_PER_YEAR,
    compound_amount,
    inflate,
    monthly_interest_rate,
    required_payment,
    simple_amount,
)


class PlanProjector:
    """
    Computes derived metrics for a financial plan.
    """

    def __init__(
        self,
        calendar: Optional[CalendarContext] = None,
        audit_logger: Optional[EngineAuditLogger] = None,
        on_track_ratio: Optional[float] = None,
    ):
        """
        Initialize projector.

        Args:
            calendar: Calendar/timezone dates are evaluated in.
            audit_logger: Event logger. Defaults to the shared local logger.
            on_track_ratio: Share of the expected cumulative net a plan must
                            reach to count as on track. Defaults to settings.
        """
        self._calendar = calendar or CalendarContext.from_settings()
        self._audit = audit_logger or get_audit_logger()
        self._on_track_ratio = (
            on_track_ratio if on_track_ratio is not None else get_settings().on_track_ratio
        )

    def duration_months(self, plan: PlanParameters) -> int:
        return plan.duration_in_months(self._calendar)

    # =========================================================================
    # SAVINGS TARGETS
    # =========================================================================

    def required_monthly_savings(self, plan: PlanParameters) -> float:
        """
        Monthly deposit that reaches plan.savings_goal by the end of the plan.

        Straight-line division when the rate is zero or the plan is shorter
        than a month (the whole goal then falls in one payment).
        """
        months = self.duration_months(plan)
        if plan.annual_rate == 0 or months == 0:
            return plan.savings_goal / max(months, 1)
        return required_payment(plan.savings_goal, plan.annual_rate, months)

    def projected_goal_value(self, plan: PlanParameters, principal: float) -> float:
        """Value of a lump sum at the end of the plan under its interest kind."""
        years = self.duration_months(plan) / MONTHS_PER_YEAR
        if plan.interest_kind == InterestKind.SIMPLE:
            return simple_amount(principal, plan.annual_rate, years)
        return compound_amount(principal, plan.annual_rate, years, plan.compounding_frequency)

    def emergency_fund_progress(
        self,
        plan: PlanParameters,
        current_amount: float,
    ) -> EmergencyFundProgress:
        """(percent of goal reached capped at 100, amount still missing)."""
        goal = plan.emergency_fund_goal
        if goal <= 0:
            return EmergencyFundProgress(0.0, 0.0)
        percent = min(max(current_amount / goal * 100, 0.0), 100.0)
        remaining = max(goal - current_amount, 0.0)
        return EmergencyFundProgress(percent, remaining)

    # =========================================================================
    # PROGRESS & STATUS
    # =========================================================================

    def progress_percentage(self, plan: PlanParameters, as_of: DateLike) -> float:
        """Elapsed share of the plan's time span, 0-100."""
        now = self._key(as_of)
        start = self._key(plan.start_date)
        end = self._key(plan.end_date)
        if now < start:
            return 0.0
        if now >= end:
            return 100.0
        return (now - start).total_seconds() / (end - start).total_seconds() * 100

    def plan_status(self, plan: PlanParameters, now: DateLike) -> PlanStatus:
        now_key = self._key(now)
        if now_key < self._key(plan.start_date):
            return PlanStatus.UPCOMING
        if now_key >= self._key(plan.end_date):
            return PlanStatus.COMPLETED
        if not plan.is_active:
            return PlanStatus.PAUSED
        return PlanStatus.ACTIVE

    def months_elapsed(self, plan: PlanParameters, as_of: DateLike) -> int:
        """
        Plan months started by as_of.

        0 before the start, the full duration after the end, otherwise the
        whole months since the start plus the month in progress.
        """
        duration = self.duration_months(plan)
        now = self._key(as_of)
        if now < self._key(plan.start_date):
            return 0
        if now > self._key(plan.end_date):
            return duration
        elapsed = months_between(plan.start_date, as_of, self._calendar) + 1
        return min(elapsed, duration)

    def remaining_time(self, plan: PlanParameters, as_of: DateLike) -> RemainingTime:
        """Years, months and days from as_of until the plan ends."""
        now = self._key(as_of)
        end = self._key(plan.end_date)
        if now >= end:
            return RemainingTime(0, 0, 0, True)

        months = months_between(now, end, self._calendar)
        anchor = add_period(now, DateUnit.MONTH, months, self._calendar)
        # Wall-clock difference, so a DST change does not cost a day
        days = (end.replace(tzinfo=None) - anchor.replace(tzinfo=None)).days
        return RemainingTime(months // 12, months % 12, days, False)

    # =========================================================================
    # PROJECTIONS
    # =========================================================================

    def net_worth_projection(
        self,
        starting_net_worth: float,
        monthly_net_income: float,
        plan: PlanParameters,
    ) -> list[float]:
        """
        Net worth at month 0..duration.

        Each month adds monthly_net_income and then grows by annual_rate / 12.
        """
        monthly_rate = plan.annual_rate / MONTHS_PER_YEAR
        values = [starting_net_worth]
        for _ in range(self.duration_months(plan)):
            values.append((values[-1] + monthly_net_income) * (1 + monthly_rate))
        return values

    def project_months(
        self,
        plan: PlanParameters,
        monthly_income: Optional[float] = None,
        monthly_expenses: Optional[float] = None,
    ) -> list[MonthlyProjection]:
        """
        One projected row per plan month.

        Expenses grow with the plan's inflation rate; interest is earned on
        the running balance only while it is positive.

        Args:
            monthly_income: Overrides the plan's evenly spread income.
            monthly_expenses: Overrides plan.monthly_expenses (e.g., with
                              figures derived from recorded expenses).
        """
        income = plan.monthly_income(self._calendar) if monthly_income is None else monthly_income
        base_expenses = plan.monthly_expenses if monthly_expenses is None else monthly_expenses
        rate = monthly_interest_rate(plan.annual_rate, plan.interest_kind)
        months = self.duration_months(plan)

        projections: list[MonthlyProjection] = []
        cumulative_net = 0.0
        for index, month in enumerate(iter_months(plan.start_date, months, self._calendar)):
            expenses = base_expenses
            if plan.inflation_rate > 0:
                expenses = inflate(base_expenses, plan.inflation_rate, index)

            net_amount = income - expenses
            interest = cumulative_net * rate if cumulative_net > 0 else 0.0
            cumulative_net += net_amount + interest

            projections.append(MonthlyProjection(
                month_index=index,
                month=month,
                projected_income=income,
                projected_expenses=expenses,
                net_amount=net_amount,
                interest_earned=interest,
                cumulative_net=cumulative_net,
            ))

        self._audit.log(EngineEventBuilder.plan_projected(plan.id, months, cumulative_net))
        return projections

    @staticmethod
    def total_projected_savings(projections: list[MonthlyProjection]) -> float:
        if not projections:
            return 0.0
        return projections[-1].cumulative_net

    def current_position(
        self,
        plan: PlanParameters,
        projections: list[MonthlyProjection],
        actual_income: float,
        actual_expenses: float,
        as_of: DateLike,
    ) -> Optional[CurrentPosition]:
        """
        Compare the projected cumulative net with what actually happened.

        Returns None unless as_of falls strictly inside the plan.
        """
        now = self._key(as_of)
        if not (self._key(plan.start_date) < now < self._key(plan.end_date)):
            return None

        elapsed = self.months_elapsed(plan, as_of)
        expected = next(
            (p.cumulative_net for p in projections if p.month_index == elapsed - 1),
            0.0,
        )
        actual = actual_income - actual_expenses

        return CurrentPosition(
            plan_id=plan.id,
            months_elapsed=elapsed,
            expected_cumulative_net=expected,
            actual_cumulative_net=actual,
            variance=actual - expected,
            is_on_track=actual >= expected * self._on_track_ratio,
        )

    def _key(self, value: DateLike) -> datetime:
        return to_datetime(value, self._calendar)
