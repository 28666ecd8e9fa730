"""Affordability (VTLB capacity) calculator.

Pure Python, Decimal arithmetic. Implements:
- Budget split of disposable income: 60% interim costs, 25% buffer, 15% repayment
- Room for a new arrangement after existing arrangement payments
- Three-way resolution plan: pay in full / installment / debt-rest request

Rules:
  debt ≤ available                → PAY_IN_FULL (boundary inclusive)
  available > €10                 → INSTALLMENT, min(available, €50) per month
  available ≤ €10                 → NO_CAPACITY (pause requested)
"""

from __future__ import annotations

import logging
import math
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, InvalidOperation

from src.models.enums import DebtStatus, ResolutionKind
from src.schemas.affordability import AffordabilityBreakdown, FinancialSnapshot, RawAmount, ResolutionPlan
from src.workflow.errors import InvalidInputError

logger = logging.getLogger(__name__)

INTERIM_COSTS_SHARE = Decimal("0.60")
BUFFER_SHARE = Decimal("0.25")
REPAYMENT_SHARE = Decimal("0.15")

# Installment viability: strictly more than this must be available
MIN_VIABLE_INSTALLMENT = Decimal("10")
# Conservative opening offer cap
MAX_OPENING_OFFER = Decimal("50")

_ZERO = Decimal("0")


def _to_euro(value: Decimal) -> Decimal:
    """Round to 2 decimal places."""
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_amount(name: str, value: RawAmount, degraded: list[str]) -> Decimal:
    """Normalize a raw numeric input.

    Missing and non-finite values become 0 and are appended to `degraded`.
    Values that are present but not numeric raise InvalidInputError.
    """
    if value is None:
        degraded.append(name)
        return _ZERO
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be numeric, got a boolean", fields=[name])
    if isinstance(value, float):
        if not math.isfinite(value):
            degraded.append(name)
            return _ZERO
        return Decimal(str(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        if not value.strip():
            degraded.append(name)
            return _ZERO
        try:
            value = Decimal(value.strip().replace(",", "."))
        except InvalidOperation:
            raise InvalidInputError(f"{name} is not a number: {value!r}", fields=[name]) from None
    if isinstance(value, Decimal):
        if not value.is_finite():
            degraded.append(name)
            return _ZERO
        return value
    raise InvalidInputError(f"{name} has unsupported type {type(value).__name__}", fields=[name])


def compute_breakdown(snapshot: FinancialSnapshot) -> AffordabilityBreakdown:
    """Compute the budget breakdown for a financial snapshot.

    Args:
        snapshot: Income, cost and arrangement totals.

    Returns:
        AffordabilityBreakdown. Negative disposable income is propagated
        through the split; only the room for a new arrangement is clamped.

    Raises:
        InvalidInputError: If a field is present but not numeric.
    """
    degraded: list[str] = []
    income = to_amount("fixed_monthly_income", snapshot.fixed_monthly_income, degraded)
    costs = to_amount("fixed_monthly_costs", snapshot.fixed_monthly_costs, degraded)

    # Absent arrangement data simply means "none"; only non-finite values degrade.
    existing_raw = snapshot.existing_arrangement_payments
    existing = _ZERO if existing_raw is None else to_amount(
        "existing_arrangement_payments", existing_raw, degraded
    )
    own_raw = snapshot.debt_monthly_payment
    own_payment = _ZERO if own_raw is None else to_amount("debt_monthly_payment", own_raw, degraded)

    disposable = _to_euro(income - costs)
    interim = _to_euro(disposable * INTERIM_COSTS_SHARE)
    buffer = _to_euro(disposable * BUFFER_SHARE)
    # Remainder keeps the three parts summing exactly to the disposable income
    repayment = disposable - interim - buffer

    existing = _to_euro(existing)
    if snapshot.debt_status == DebtStatus.BETALINGSREGELING:
        effective = _to_euro(max(_ZERO, existing - own_payment))
    else:
        effective = existing

    available = _to_euro(max(_ZERO, repayment - effective))

    if degraded:
        logger.warning("Affordability computed with defaulted inputs: %s", ", ".join(degraded))

    return AffordabilityBreakdown(
        fixed_monthly_income=_to_euro(income),
        fixed_monthly_costs=_to_euro(costs),
        disposable_income=disposable,
        interim_costs_budget=interim,
        buffer_budget=buffer,
        repayment_capacity=repayment,
        existing_arrangement_payments=existing,
        effective_existing_commitments=effective,
        available_for_new_arrangement=available,
        degraded_fields=tuple(degraded),
    )


def compute_resolution_plan(breakdown: AffordabilityBreakdown, debt_amount: RawAmount) -> ResolutionPlan:
    """Classify a debt against the available room.

    Args:
        breakdown: Output of compute_breakdown().
        debt_amount: Outstanding amount of the target debt; must be > 0.

    Returns:
        ResolutionPlan of kind PAY_IN_FULL, INSTALLMENT or NO_CAPACITY.

    Raises:
        InvalidInputError: If the debt amount is missing, non-numeric or ≤ 0.
    """
    degraded: list[str] = []
    amount = to_amount("debt_amount", debt_amount, degraded)
    if degraded or amount <= _ZERO:
        raise InvalidInputError("debt_amount must be a positive number", fields=["debt_amount"])
    amount = _to_euro(amount)
    available = breakdown.available_for_new_arrangement

    if amount <= available:
        return ResolutionPlan(
            kind=ResolutionKind.PAY_IN_FULL,
            debt_amount=amount,
            available_for_new_arrangement=available,
        )

    if available > MIN_VIABLE_INSTALLMENT:
        proposed = min(available, MAX_OPENING_OFFER)
        duration = int((amount / proposed).to_integral_value(rounding=ROUND_CEILING))
        return ResolutionPlan(
            kind=ResolutionKind.INSTALLMENT,
            debt_amount=amount,
            available_for_new_arrangement=available,
            proposed_monthly_amount=proposed,
            duration_months=duration,
        )

    return ResolutionPlan(
        kind=ResolutionKind.NO_CAPACITY,
        debt_amount=amount,
        available_for_new_arrangement=available,
    )
