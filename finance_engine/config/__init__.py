"""Configuration package."""

from finance_engine.config.settings import (
    AMORTIZATION_EPSILON,
    DEFAULT_MAX_INSTANCES,
    MAX_AMORTIZATION_MONTHS,
    MAX_OCCURRENCES,
    EngineSettings,
    get_settings,
)

__all__ = [
    "AMORTIZATION_EPSILON",
    "DEFAULT_MAX_INSTANCES",
    "MAX_AMORTIZATION_MONTHS",
    "MAX_OCCURRENCES",
    "EngineSettings",
    "get_settings",
]
