"""Shared fixtures for the finance engine tests."""

import pytest
from datetime import date

from finance_engine.audit import EngineAuditLogger
from finance_engine.dates import UTC_CALENDAR
from finance_engine.models import PlanParameters


@pytest.fixture
def events():
    """List collecting every event sent to the audit_logger fixture."""
    return []


@pytest.fixture
def audit_logger(events):
    return EngineAuditLogger(sink=events.append)


@pytest.fixture
def calendar():
    return UTC_CALENDAR


@pytest.fixture
def plan():
    """One-year plan with round numbers: 5000/month income, 3000/month expenses."""
    return PlanParameters(
        name="2024 Budget",
        start_date=date(2024, 1, 1),
        end_date=date(2025, 1, 1),
        total_income=60000.0,
        savings_goal=12000.0,
        emergency_fund_goal=6000.0,
        monthly_expenses=3000.0,
    )
