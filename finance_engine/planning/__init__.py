"""Financial math, plan projection and budget variance."""

from finance_engine.planning.financial_math import (
    InvalidInputError,
    amortization_schedule,
    amortize,
    compound_amount,
    future_value_of_annuity,
    inflate,
    monthly_interest_rate,
    present_value_of_annuity,
    required_payment,
    simple_amount,
)
from finance_engine.planning.projector import PlanProjector
from finance_engine.planning.variance import BudgetVarianceAnalyzer

__all__ = [
    "BudgetVarianceAnalyzer",
    "InvalidInputError",
    "PlanProjector",
    "amortization_schedule",
    "amortize",
    "compound_amount",
    "future_value_of_annuity",
    "inflate",
    "monthly_interest_rate",
    "present_value_of_annuity",
    "required_payment",
    "simple_amount",
]
