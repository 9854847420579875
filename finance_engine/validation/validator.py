"""
Two-Stage Plan Validation

The engine's functions expect pre-validated input. This module is the
pre-validation callers run on form data before building a plan or rule.

STAGE 1 - STRUCTURAL VALIDATION:
- Required values present (name, income)
- Ranges (rate, inflation, duration)
- Date order

STAGE 2 - SEMANTIC VALIDATION:
- Category allocations adding up to more than 100%
- Savings goal larger than the income it comes from
- Settings that make a goal unreachable or meaningless

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can correct the input.
"""

from collections.abc import Mapping
from typing import Optional
from uuid import UUID

from finance_engine.audit import EngineAuditLogger, get_audit_logger
from finance_engine.config import EngineSettings, get_settings
from finance_engine.dates import CalendarContext, DateLike, months_between, to_datetime
from finance_engine.models.audit import EngineEventBuilder
from finance_engine.models.plan import PlanParameters, ValidationIssue, ValidationResult
from finance_engine.models.recurrence import RecurrenceKind, RecurrenceRule


# Allocation totals below this are reported as under-allocated
UNDER_ALLOCATED_BELOW = 95.0

# Share of the budget above which a single category is flagged
CATEGORY_SHARE_LIMIT = 50.0


class PlanValidator:
    """
    Validates plan input and recurrence rules through a two-stage pipeline.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        calendar: Optional[CalendarContext] = None,
        audit_logger: Optional[EngineAuditLogger] = None,
    ):
        self._settings = settings or get_settings()
        self._calendar = calendar or CalendarContext(timezone=self._settings.timezone)
        self._audit = audit_logger or get_audit_logger()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def validate_plan_input(
        self,
        name: str,
        total_income: float,
        start_date: DateLike,
        end_date: DateLike,
        savings_goal: float = 0.0,
        annual_rate: float = 0.0,
        inflation_rate: Optional[float] = None,
        category_allocations: Optional[Mapping[str, float]] = None,
        plan_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """
        Validate raw plan fields, e.g. from a form submission.
        """
        structure_valid, issues = self._validate_structure(
            name=name,
            total_income=total_income,
            start_date=start_date,
            end_date=end_date,
            savings_goal=savings_goal,
            annual_rate=annual_rate,
            inflation_rate=inflation_rate,
        )

        semantic_valid = False
        if structure_valid:
            semantic_valid, semantic_issues = self._validate_semantic(
                total_income=total_income,
                savings_goal=savings_goal,
                annual_rate=annual_rate,
                category_allocations=category_allocations or {},
            )
            issues.extend(semantic_issues)

        return self._finish("plan", structure_valid, semantic_valid, issues, plan_id)

    def validate_plan(self, plan: PlanParameters) -> ValidationResult:
        """Validate an already-built plan against the engine's business rules."""
        return self.validate_plan_input(
            name=plan.name,
            total_income=plan.total_income,
            start_date=plan.start_date,
            end_date=plan.end_date,
            savings_goal=plan.savings_goal,
            annual_rate=plan.annual_rate,
            inflation_rate=plan.inflation_rate,
            category_allocations=plan.category_allocations,
            plan_id=plan.id,
        )

    def validate_rule(self, rule: RecurrenceRule) -> ValidationResult:
        """
        Validate a recurrence rule.

        A custom rule without a positive interval is reported as an error
        here; the expander itself treats it as a rule with no occurrences.
        """
        issues: list[ValidationIssue] = []

        if not rule.has_valid_interval:
            issues.append(ValidationIssue(
                field="custom_interval_days",
                issue_type="out_of_range",
                message="Custom recurrence needs an interval of at least one day",
                severity="error",
                suggested_fix="Enter how many days apart the expense repeats",
            ))

        if rule.kind == RecurrenceKind.NONE and rule.end_date is not None:
            issues.append(ValidationIssue(
                field="end_date",
                issue_type="ignored",
                message="End date has no effect on a one-time expense",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return self._finish("recurrence_rule", is_valid, is_valid, issues)

    def validate_allocations(self, allocations: Mapping[str, float]) -> ValidationResult:
        """
        Validate category budget percentages on their own.

        Errors: negative shares, a total above 100%.
        Warnings: a total below 95%, any single category above 50%.
        """
        issues = self._allocation_issues(allocations)
        is_valid = not any(issue.severity == "error" for issue in issues)
        return self._finish("budget_allocations", True, is_valid, issues)

    # =========================================================================
    # STAGES
    # =========================================================================

    def _validate_structure(
        self,
        name: str,
        total_income: float,
        start_date: DateLike,
        end_date: DateLike,
        savings_goal: float,
        annual_rate: float,
        inflation_rate: Optional[float],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Structural validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not name or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Plan name cannot be empty",
                severity="error",
                suggested_fix="Give the plan a name",
            ))

        if total_income <= 0:
            issues.append(ValidationIssue(
                field="total_income",
                issue_type="out_of_range",
                message="Income must be greater than zero",
                severity="error",
            ))

        if savings_goal < 0:
            issues.append(ValidationIssue(
                field="savings_goal",
                issue_type="out_of_range",
                message="Savings goal cannot be negative",
                severity="error",
            ))

        if not 0 <= annual_rate <= 1:
            issues.append(ValidationIssue(
                field="annual_rate",
                issue_type="out_of_range",
                message=f"Interest rate ({annual_rate}) must be between 0 and 1",
                severity="error",
                suggested_fix="Enter the rate as a decimal, e.g. 0.05 for 5%",
            ))

        if inflation_rate is not None and not -0.5 <= inflation_rate <= 1:
            issues.append(ValidationIssue(
                field="inflation_rate",
                issue_type="out_of_range",
                message=f"Inflation rate ({inflation_rate}) must be between -0.5 and 1",
                severity="error",
            ))

        issues.extend(self._validate_span(start_date, end_date))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_span(self, start_date: DateLike, end_date: DateLike) -> list[ValidationIssue]:
        if to_datetime(start_date, self._calendar) >= to_datetime(end_date, self._calendar):
            return [ValidationIssue(
                field="end_date",
                issue_type="inconsistent",
                message="Plan end date must be after its start date",
                severity="error",
            )]

        months = months_between(start_date, end_date, self._calendar)
        max_months = self._settings.max_plan_duration_months
        if months < 1:
            return [ValidationIssue(
                field="end_date",
                issue_type="out_of_range",
                message="Plan must last at least one month",
                severity="error",
            )]
        if months > max_months:
            return [ValidationIssue(
                field="end_date",
                issue_type="out_of_range",
                message=f"Plan cannot last longer than {max_months} months",
                severity="error",
                suggested_fix="Split the goal into several shorter plans",
            )]
        return []

    def _validate_semantic(
        self,
        total_income: float,
        savings_goal: float,
        annual_rate: float,
        category_allocations: Mapping[str, float],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if category_allocations:
            issues.extend(self._allocation_issues(category_allocations))

        if savings_goal > total_income:
            issues.append(ValidationIssue(
                field="savings_goal",
                issue_type="suspicious_value",
                message="Savings goal is larger than the plan's total income",
                severity="warning",
                suggested_fix="Check the goal or extend the plan",
            ))

        if annual_rate == 0 and savings_goal > 0:
            issues.append(ValidationIssue(
                field="annual_rate",
                issue_type="zero_rate",
                message="No interest rate set; savings will not grow",
                severity="info",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _allocation_issues(self, allocations: Mapping[str, float]) -> list[ValidationIssue]:
        issues = []

        negative = sorted(c for c, pct in allocations.items() if pct < 0)
        if negative:
            issues.append(ValidationIssue(
                field="category_allocations",
                issue_type="out_of_range",
                message=f"Allocations cannot be negative: {', '.join(negative)}",
                severity="error",
            ))

        allocated = sum(allocations.values())
        if allocated > 100:
            issues.append(ValidationIssue(
                field="category_allocations",
                issue_type="inconsistent",
                message=f"Category allocations add up to {allocated:.1f}%, more than 100%",
                severity="error",
                suggested_fix="Lower some category percentages",
            ))
        elif allocated < UNDER_ALLOCATED_BELOW:
            issues.append(ValidationIssue(
                field="category_allocations",
                issue_type="unallocated",
                message=f"{100 - allocated:.1f}% of the budget is not allocated",
                severity="warning",
                suggested_fix="Assign the rest of the budget to a category",
            ))
        elif allocated < 100:
            issues.append(ValidationIssue(
                field="category_allocations",
                issue_type="unallocated",
                message=f"{100 - allocated:.1f}% of the budget is not allocated",
                severity="info",
            ))

        for category in sorted(allocations):
            if allocations[category] > CATEGORY_SHARE_LIMIT:
                issues.append(ValidationIssue(
                    field="category_allocations",
                    issue_type="suspicious_value",
                    message=(
                        f"{category} takes {allocations[category]:.1f}% of the budget, "
                        f"more than {CATEGORY_SHARE_LIMIT:.0f}%"
                    ),
                    severity="warning",
                ))

        return issues

    def _finish(
        self,
        subject: str,
        structure_valid: bool,
        semantic_valid: bool,
        issues: list[ValidationIssue],
        entity_id: Optional[UUID] = None,
    ) -> ValidationResult:
        is_valid = structure_valid and semantic_valid
        result = ValidationResult(
            subject=subject,
            structure_valid=structure_valid,
            semantic_valid=semantic_valid,
            is_valid=is_valid,
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )
        self._audit.log(EngineEventBuilder.validation_finished(
            subject,
            is_valid,
            [issue.model_dump() for issue in issues],
            entity_id,
        ))
        return result
