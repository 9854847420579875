"""
Data Models Package

This package contains all Pydantic models used by the finance engine.
Every value passed into or out of the engine conforms to these schemas.
"""

from finance_engine.models.recurrence import (
    RecurrenceKind,
    RecurrenceRule,
)
from finance_engine.models.expense import (
    ExpenseInstance,
    ExpenseStatus,
    ExpenseTemplate,
)
from finance_engine.models.plan import (
    AmortizationOutcome,
    AmortizationResult,
    AmortizationRow,
    BudgetAnalysis,
    BudgetBucket,
    BudgetRecommendation,
    BudgetRule,
    CategoryFigures,
    CurrentPosition,
    EmergencyFundProgress,
    InterestKind,
    MonthlyBreakdown,
    MonthlyProjection,
    PlanParameters,
    PlanStatus,
    RecommendationKind,
    RemainingTime,
    ValidationIssue,
    ValidationResult,
)
from finance_engine.models.audit import (
    EngineEvent,
    EngineEventBuilder,
    EngineEventType,
    EngineSeverity,
)

__all__ = [
    # Recurrence models
    "RecurrenceKind",
    "RecurrenceRule",
    # Expense models
    "ExpenseInstance",
    "ExpenseStatus",
    "ExpenseTemplate",
    # Plan models
    "AmortizationOutcome",
    "AmortizationResult",
    "AmortizationRow",
    "BudgetAnalysis",
    "BudgetBucket",
    "BudgetRecommendation",
    "BudgetRule",
    "CategoryFigures",
    "CurrentPosition",
    "EmergencyFundProgress",
    "InterestKind",
    "MonthlyBreakdown",
    "MonthlyProjection",
    "PlanParameters",
    "PlanStatus",
    "RecommendationKind",
    "RemainingTime",
    "ValidationIssue",
    "ValidationResult",
    # Engine event models
    "EngineEvent",
    "EngineEventBuilder",
    "EngineEventType",
    "EngineSeverity",
]
