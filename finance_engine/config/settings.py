"""
Configuration Management for the Finance Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: The safety caps below are module constants, not settings.
They bound every loop in the engine and must be identical in tests and
production, so nothing at runtime can raise them.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# SAFETY CAPS
# =============================================================================

# Maximum dates emitted by a single recurrence expansion.
MAX_OCCURRENCES = 1000

# Maximum months walked by the amortization loop.
MAX_AMORTIZATION_MONTHS = 1000

# Default number of instances generated from one template per call.
DEFAULT_MAX_INSTANCES = 50

# Balance at or below which a debt counts as paid off.
AMORTIZATION_EPSILON = 0.01


class EngineSettings(BaseSettings):
    """
    Engine settings.

    Loads configuration from FINANCE_ENGINE_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Calendar
    timezone: str = Field(
        default="UTC",
        description="IANA timezone used when none is passed explicitly"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for engine log output"
    )
    log_format: str = Field(
        default="json",
        pattern="^(json|console)$",
        description="Log renderer: json or console"
    )

    # Generated instances
    recurring_marker: str = Field(
        default="(recurring)",
        min_length=1,
        max_length=40,
        description="Suffix appended to the description of generated instances"
    )

    # Planning thresholds
    on_track_ratio: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Share of expected cumulative net a plan must reach to be on track"
    )
    max_plan_duration_months: int = Field(
        default=120,
        ge=1,
        le=600,
        description="Longest plan accepted by the validator"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept level names in any case."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> EngineSettings:
    """
    Get engine settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return EngineSettings()
