"""
Financial Math

Stateless formulas for growth, annuities and debt amortization.

Rates are decimals (0.05 = 5%). Annuity formulas compound monthly
(annual_rate / 12 per period).

DESIGN DECISION: A zero rate is its own branch in every formula, never a
fallback after a failed division. Negative rates, periods or years are a
caller contract violation and raise InvalidInputError; they are never
clamped.
"""

from finance_engine.audit import get_audit_logger
from finance_engine.config import AMORTIZATION_EPSILON, MAX_AMORTIZATION_MONTHS
from finance_engine.models.audit import EngineEventBuilder
from finance_engine.models.plan import (
    AmortizationOutcome,
    AmortizationResult,
    AmortizationRow,
    InterestKind,
)


MONTHS_PER_YEAR = 12


class InvalidInputError(ValueError):
    """A value outside a function's contract (e.g., a negative rate)."""
    pass


def _reject(function: str, message: str) -> None:
    get_audit_logger().log_invalid_input(function, message)
    raise InvalidInputError(message)


def _require_non_negative(function: str, **values: float) -> None:
    for name, value in values.items():
        if value < 0:
            _reject(function, f"{name} must be >= 0, got {value}")


# =============================================================================
# GROWTH
# =============================================================================

def compound_amount(
    principal: float,
    annual_rate: float,
    years: float,
    periods_per_year: int = MONTHS_PER_YEAR,
) -> float:
    """principal * (1 + annual_rate / periods_per_year) ^ (periods_per_year * years)"""
    _require_non_negative("compound_amount", annual_rate=annual_rate, years=years)
    if periods_per_year <= 0:
        _reject("compound_amount", f"periods_per_year must be > 0, got {periods_per_year}")
    if annual_rate == 0:
        return principal
    return principal * (1 + annual_rate / periods_per_year) ** (periods_per_year * years)


def simple_amount(principal: float, annual_rate: float, years: float) -> float:
    """principal * (1 + annual_rate * years)"""
    _require_non_negative("simple_amount", annual_rate=annual_rate, years=years)
    return principal * (1 + annual_rate * years)


def monthly_interest_rate(annual_rate: float, kind: InterestKind) -> float:
    """
    Rate applied to a balance each month.

    Simple interest splits the annual rate evenly; compound interest uses
    the monthly rate that compounds to annual_rate over twelve months.
    """
    _require_non_negative("monthly_interest_rate", annual_rate=annual_rate)
    if annual_rate == 0:
        return 0.0
    if kind == InterestKind.SIMPLE:
        return annual_rate / MONTHS_PER_YEAR
    return (1 + annual_rate) ** (1 / MONTHS_PER_YEAR) - 1


def inflate(amount: float, annual_inflation: float, months: int) -> float:
    """amount after `months` of monthly inflation at annual_inflation / 12."""
    _require_non_negative("inflate", months=months)
    if annual_inflation == 0:
        return amount
    return amount * (1 + annual_inflation / MONTHS_PER_YEAR) ** months


# =============================================================================
# ANNUITIES
# =============================================================================

def future_value_of_annuity(payment: float, annual_rate: float, periods: int) -> float:
    """Value after `periods` monthly payments of `payment`, compounded monthly."""
    _require_non_negative("future_value_of_annuity", annual_rate=annual_rate, periods=periods)
    if annual_rate == 0:
        return payment * periods
    rate = annual_rate / MONTHS_PER_YEAR
    return payment * ((1 + rate) ** periods - 1) / rate


def present_value_of_annuity(payment: float, annual_rate: float, periods: int) -> float:
    """Value today of `periods` future monthly payments of `payment`."""
    _require_non_negative("present_value_of_annuity", annual_rate=annual_rate, periods=periods)
    if annual_rate == 0:
        return payment * periods
    rate = annual_rate / MONTHS_PER_YEAR
    return payment * (1 - (1 + rate) ** -periods) / rate


def required_payment(target_future_value: float, annual_rate: float, periods: int) -> float:
    """
    Monthly payment that grows to target_future_value after `periods` payments.

    Inverse of future_value_of_annuity. With zero periods the whole target
    is due at once.
    """
    _require_non_negative("required_payment", annual_rate=annual_rate, periods=periods)
    if periods == 0:
        return target_future_value
    if annual_rate == 0:
        return target_future_value / periods
    rate = annual_rate / MONTHS_PER_YEAR
    return target_future_value * rate / ((1 + rate) ** periods - 1)


# =============================================================================
# AMORTIZATION
# =============================================================================

def amortization_schedule(
    principal: float,
    monthly_payment: float,
    annual_rate: float,
) -> tuple[list[AmortizationRow], AmortizationOutcome]:
    """
    Month-by-month paydown of principal with a fixed payment.

    Stops when the balance reaches AMORTIZATION_EPSILON (PAID_OFF), when a
    payment does not cover that month's interest (INSUFFICIENT_PAYMENT,
    before any row is added for that month) or after
    MAX_AMORTIZATION_MONTHS rows (CAP_REACHED).
    """
    _require_non_negative(
        "amortization_schedule",
        principal=principal,
        monthly_payment=monthly_payment,
        annual_rate=annual_rate,
    )
    rate = annual_rate / MONTHS_PER_YEAR
    balance = principal
    rows: list[AmortizationRow] = []

    while balance > AMORTIZATION_EPSILON:
        if len(rows) >= MAX_AMORTIZATION_MONTHS:
            return rows, AmortizationOutcome.CAP_REACHED

        interest = balance * rate
        principal_portion = monthly_payment - interest
        if principal_portion <= 0:
            return rows, AmortizationOutcome.INSUFFICIENT_PAYMENT

        payment = monthly_payment
        if principal_portion >= balance:
            # Final, smaller payment
            principal_portion = balance
            payment = balance + interest

        balance -= principal_portion
        rows.append(AmortizationRow(
            month=len(rows) + 1,
            payment=payment,
            interest=interest,
            principal=principal_portion,
            balance=balance,
        ))

    return rows, AmortizationOutcome.PAID_OFF


def amortize(
    principal: float,
    monthly_payment: float,
    annual_rate: float,
) -> AmortizationResult:
    """
    Months to pay off principal and the total interest paid.

    Check result.outcome before reading months as a payoff time: a payment
    that never covers the interest stops immediately, and a payment too
    small to finish within MAX_AMORTIZATION_MONTHS stops at the cap.
    """
    rows, outcome = amortization_schedule(principal, monthly_payment, annual_rate)
    result = AmortizationResult(
        months=len(rows),
        total_interest=sum(row.interest for row in rows),
        outcome=outcome,
    )
    get_audit_logger().log(
        EngineEventBuilder.amortization_finished(
            outcome.value, result.months, result.total_interest
        )
    )
    return result
