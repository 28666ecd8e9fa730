"""Schemas for the affordability calculation pipeline.

Pure data classes — no DB dependencies. FinancialSnapshot is a plain
dataclass because it must carry raw, possibly non-finite or missing
numbers; the calculator normalizes them and reports what it had to default.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import DebtStatus, ResolutionKind

# Raw numeric input as handed over by the persistence collaborator or a form
RawAmount = Union[Decimal, float, int, str, None]


@dataclass(frozen=True)
class FinancialSnapshot:
    """Inputs for a single affordability computation (never persisted)."""

    fixed_monthly_income: RawAmount = None
    fixed_monthly_costs: RawAmount = None
    existing_arrangement_payments: RawAmount = None  # sum over all running arrangements
    debt_amount: RawAmount = None
    debt_monthly_payment: RawAmount = None           # only set once this debt has an arrangement
    debt_status: DebtStatus | None = None


class AffordabilityBreakdown(BaseModel):
    """Budget split derived from a FinancialSnapshot. Immutable."""

    model_config = ConfigDict(frozen=True)

    fixed_monthly_income: Decimal
    fixed_monthly_costs: Decimal
    disposable_income: Decimal           # may be negative: crisis signal
    interim_costs_budget: Decimal        # 60%
    buffer_budget: Decimal               # 25%
    repayment_capacity: Decimal          # 15%
    existing_arrangement_payments: Decimal
    effective_existing_commitments: Decimal
    available_for_new_arrangement: Decimal  # never negative
    degraded_fields: tuple[str, ...] = Field(default_factory=tuple)

    @property
    def is_degraded(self) -> bool:
        """True when at least one input was missing or non-finite and defaulted to 0."""
        return bool(self.degraded_fields)

    @property
    def is_crisis(self) -> bool:
        """Fixed costs exceed fixed income."""
        return self.disposable_income < 0


class ResolutionPlan(BaseModel):
    """Recommendation derived from the breakdown and the debt amount."""

    model_config = ConfigDict(frozen=True)

    kind: ResolutionKind
    debt_amount: Decimal
    available_for_new_arrangement: Decimal
    proposed_monthly_amount: Decimal | None = None  # installment only
    duration_months: int | None = None              # installment only

    @property
    def requests_pause(self) -> bool:
        return self.kind == ResolutionKind.NO_CAPACITY
