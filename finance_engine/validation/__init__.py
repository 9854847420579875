"""Validation package."""

from finance_engine.validation.validator import PlanValidator

__all__ = ["PlanValidator"]
