"""
Budget Variance Analysis

Compares planned and actual monthly figures and condenses them into a
0-100 financial health score.

The health score is the equal-weight average of three sub-scores:
- income achievement: actual / planned income, capped at 100
- expense control: 100 within budget, falling linearly to 0 at 2x planned
- savings achievement: actual / planned savings, capped at 100

It depends only on the breakdown's six income/expense/savings fields, so
the same breakdown always scores the same.
"""

from collections.abc import Mapping
from datetime import date
from typing import Optional
from uuid import UUID

from finance_engine.dates import CalendarContext, DateLike, iter_months
from finance_engine.models.plan import (
    BudgetAnalysis,
    BudgetBucket,
    BudgetRecommendation,
    BudgetRule,
    CategoryFigures,
    MonthlyBreakdown,
    PlanParameters,
    RecommendationKind,
    month_key,
)
from finance_engine.planning.financial_math import required_payment


MAX_SCORE = 100.0

# Category ids counted as needs / savings; everything else is a want.
NEEDS_CATEGORIES = frozenset(
    {"housing", "food", "transportation", "utilities", "health", "insurance"}
)
SAVINGS_CATEGORIES = frozenset({"savings", "investment", "retirement"})

# Recommendation thresholds, in percent of the budget
NEEDS_CEILING = 60.0
WANTS_CEILING = 40.0
SAVINGS_FLOOR = 15.0


def _achievement(actual: float, planned: float) -> float:
    if planned == 0:
        return MAX_SCORE
    return min(max(actual / planned, 0.0), 1.0) * MAX_SCORE


class BudgetVarianceAnalyzer:
    """
    Planned-vs-actual analysis for plan months.
    """

    def __init__(self, calendar: Optional[CalendarContext] = None):
        self._calendar = calendar or CalendarContext.from_settings()

    # =========================================================================
    # VARIANCE & SCORES
    # =========================================================================

    @staticmethod
    def variance(
        planned_by_category: Mapping[str, float],
        actual_by_category: Mapping[str, float],
    ) -> dict[str, float]:
        """
        planned - actual for every planned category.

        Planned categories without actual spending count as zero actual.
        Categories that only appear in the actuals are ignored.
        """
        return {
            category: planned - actual_by_category.get(category, 0.0)
            for category, planned in planned_by_category.items()
        }

    @staticmethod
    def income_score(breakdown: MonthlyBreakdown) -> float:
        return _achievement(breakdown.actual_income, breakdown.planned_income)

    @staticmethod
    def expense_score(breakdown: MonthlyBreakdown) -> float:
        planned = breakdown.planned_expenses
        actual = breakdown.actual_expenses
        if actual <= planned:
            return MAX_SCORE
        if planned == 0:
            return 0.0
        overspend = (actual - planned) / planned
        return max(0.0, MAX_SCORE * (1 - overspend))

    @staticmethod
    def savings_score(breakdown: MonthlyBreakdown) -> float:
        return _achievement(breakdown.actual_savings, breakdown.planned_savings)

    def health_score(self, breakdown: MonthlyBreakdown) -> float:
        """Composite 0-100 score for one month."""
        scores = (
            self.income_score(breakdown),
            self.expense_score(breakdown),
            self.savings_score(breakdown),
        )
        return sum(scores) / len(scores)

    @staticmethod
    def rule_adherence(
        needs_pct: float,
        wants_pct: float,
        savings_pct: float,
        rule: Optional[BudgetRule] = None,
    ) -> float:
        """
        How closely a needs/wants/savings split follows a budget rule.

        100 - 2 * (average absolute deviation in percentage points), floored at 0.
        Defaults to the 50/30/20 rule.
        """
        rule = rule or BudgetRule()
        deviations = (
            abs(needs_pct - rule.needs_target),
            abs(wants_pct - rule.wants_target),
            abs(savings_pct - rule.savings_target),
        )
        average = sum(deviations) / len(deviations)
        return max(0.0, MAX_SCORE - 2 * average)

    # =========================================================================
    # DISTRIBUTION ANALYSIS
    # =========================================================================

    @staticmethod
    def bucket_of(category_id: str) -> BudgetBucket:
        """Budget bucket a category id falls in (case-insensitive)."""
        key = category_id.lower()
        if key in NEEDS_CATEGORIES:
            return BudgetBucket.NEEDS
        if key in SAVINGS_CATEGORIES:
            return BudgetBucket.SAVINGS
        return BudgetBucket.WANTS

    def analyze_distribution(
        self,
        allocations: Mapping[str, float],
        rule: Optional[BudgetRule] = None,
    ) -> BudgetAnalysis:
        """
        Group category allocations into needs / wants / savings and score
        the split against rule (50/30/20 by default).
        """
        rule = rule or BudgetRule()
        totals = {bucket: 0.0 for bucket in BudgetBucket}
        for category, percent in allocations.items():
            totals[self.bucket_of(category)] += percent

        needs = totals[BudgetBucket.NEEDS]
        wants = totals[BudgetBucket.WANTS]
        savings = totals[BudgetBucket.SAVINGS]

        return BudgetAnalysis(
            total_allocated=sum(allocations.values()),
            needs_percentage=needs,
            wants_percentage=wants,
            savings_percentage=savings,
            needs_variance=abs(needs - rule.needs_target),
            wants_variance=abs(wants - rule.wants_target),
            savings_variance=abs(savings - rule.savings_target),
            adherence_score=self.rule_adherence(needs, wants, savings, rule),
            recommendations=tuple(self.recommendations(needs, wants, savings)),
        )

    @staticmethod
    def recommendations(
        needs_pct: float,
        wants_pct: float,
        savings_pct: float,
    ) -> list[BudgetRecommendation]:
        """Suggested changes for a needs/wants/savings split, most urgent first."""
        found = []
        if needs_pct > NEEDS_CEILING:
            found.append(BudgetRecommendation(
                kind=RecommendationKind.REDUCE_NEEDS,
                priority="high",
                message=f"Needs take {needs_pct:.0f}% of the budget; aim for at most {NEEDS_CEILING:.0f}%",
            ))
        if savings_pct < SAVINGS_FLOOR:
            found.append(BudgetRecommendation(
                kind=RecommendationKind.INCREASE_SAVINGS,
                priority="high",
                message=f"Savings are {savings_pct:.0f}% of the budget; aim for at least {SAVINGS_FLOOR:.0f}%",
            ))
        if wants_pct > WANTS_CEILING:
            found.append(BudgetRecommendation(
                kind=RecommendationKind.REDUCE_WANTS,
                priority="medium",
                message=f"Wants take {wants_pct:.0f}% of the budget; aim for at most {WANTS_CEILING:.0f}%",
            ))
        return found

    # =========================================================================
    # BREAKDOWN CONSTRUCTION
    # =========================================================================

    @staticmethod
    def planned_by_category(plan: PlanParameters, monthly_budget: float) -> dict[str, float]:
        """Monthly amount per category from the plan's allocation percentages."""
        return {
            category: monthly_budget * percent / 100
            for category, percent in plan.category_allocations.items()
        }

    def breakdown_months(self, plan: PlanParameters) -> list[date]:
        """First day of every month that needs a breakdown (at least one)."""
        months = max(plan.duration_in_months(self._calendar), 1)
        return [
            month_key(month, self._calendar)
            for month in iter_months(plan.start_date, months, self._calendar)
        ]

    def build_breakdown(
        self,
        month: DateLike,
        planned_income: float,
        planned_expenses: float,
        planned_savings: float,
        actual_income: float = 0.0,
        actual_expenses: float = 0.0,
        actual_savings: float = 0.0,
        planned_by_category: Optional[Mapping[str, float]] = None,
        actual_by_category: Optional[Mapping[str, float]] = None,
        plan_id: Optional[UUID] = None,
    ) -> MonthlyBreakdown:
        """
        Assemble a MonthlyBreakdown.

        The category map holds every planned category plus any category
        with actual spending only (planned 0).
        """
        planned_by_category = planned_by_category or {}
        actual_by_category = actual_by_category or {}
        categories = {
            category: CategoryFigures(
                planned=planned_by_category.get(category, 0.0),
                actual=actual_by_category.get(category, 0.0),
            )
            for category in {**planned_by_category, **actual_by_category}
        }
        return MonthlyBreakdown(
            plan_id=plan_id,
            month=month_key(month, self._calendar),
            planned_income=planned_income,
            actual_income=actual_income,
            planned_expenses=planned_expenses,
            actual_expenses=actual_expenses,
            planned_savings=planned_savings,
            actual_savings=actual_savings,
            categories=categories,
        )

    def plan_breakdowns(
        self,
        plan: PlanParameters,
        monthly_budget: Optional[float] = None,
    ) -> list[MonthlyBreakdown]:
        """
        Planned-only breakdowns for every month of a plan.

        Planned savings are the monthly deposit that reaches the savings goal
        at the plan's rate. monthly_budget defaults to plan.monthly_expenses.
        """
        months = plan.duration_in_months(self._calendar)
        budget = plan.monthly_expenses if monthly_budget is None else monthly_budget
        planned_categories = self.planned_by_category(plan, budget)
        planned_savings = required_payment(plan.savings_goal, plan.annual_rate, months)

        return [
            self.build_breakdown(
                month=month,
                planned_income=plan.monthly_income(self._calendar),
                planned_expenses=budget,
                planned_savings=planned_savings,
                planned_by_category=planned_categories,
                plan_id=plan.id,
            )
            for month in self.breakdown_months(plan)
        ]
