"""Aggregate persisted income, cost and debt records into a FinancialSnapshot.

Only fixed income counts toward the affordability split; extra (one-off) income
is ignored. Existing arrangement payments are summed over all debts with a
running plan that has started by the target month.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from src.models.budget import FixedCost, Income
from src.models.debt import Debt
from src.models.enums import DebtStatus, IncomeType
from src.schemas.affordability import FinancialSnapshot


def _month_index(value: date) -> int:
    return value.year * 12 + value.month


def _income_active_in(income: Income, for_month: date) -> bool:
    if income.start_date is None:
        return income.is_active is not False
    target = _month_index(for_month)
    if _month_index(income.start_date) > target:
        return False
    if income.end_date is not None and _month_index(income.end_date) < target:
        return False
    return True


def fixed_monthly_income(incomes: Iterable[Income], for_month: date) -> Decimal | None:
    """Sum of fixed income active in `for_month`.

    Returns None when there are no income records at all, so the breakdown can
    report the income as a defaulted input.
    """
    incomes = list(incomes)
    if not incomes:
        return None

    total = Decimal("0")
    for income in incomes:
        if income.income_type != IncomeType.FIXED.value:
            continue
        if not _income_active_in(income, for_month):
            continue
        monthly = income.monthly_equivalent if income.monthly_equivalent is not None else income.amount
        total += monthly or Decimal("0")
    return total


def fixed_monthly_costs(costs: Iterable[FixedCost]) -> Decimal:
    """Sum of all active recurring costs."""
    return sum(
        (cost.amount or Decimal("0") for cost in costs if cost.is_active is not False),
        start=Decimal("0"),
    )


def active_arrangement_payments(debts: Iterable[Debt], for_month: date) -> Decimal:
    """Sum of monthly payments of arrangements running in `for_month`."""
    target = _month_index(for_month)
    total = Decimal("0")
    for debt in debts:
        payment = debt.monthly_payment or Decimal("0")
        running = debt.status == DebtStatus.BETALINGSREGELING.value or (
            debt.status == DebtStatus.ACTIVE.value and payment > 0
        )
        if not running:
            continue
        if debt.start_date is not None and _month_index(debt.start_date) > target:
            continue
        total += payment
    return total


def build_snapshot(
    debt: Debt,
    incomes: Iterable[Income],
    costs: Iterable[FixedCost],
    debts: Iterable[Debt],
    today: date,
) -> FinancialSnapshot:
    """Build the affordability input for `debt` as of `today`."""
    status = None
    if debt.status:
        try:
            status = DebtStatus(debt.status)
        except ValueError:
            status = None

    return FinancialSnapshot(
        fixed_monthly_income=fixed_monthly_income(incomes, today),
        fixed_monthly_costs=fixed_monthly_costs(costs),
        existing_arrangement_payments=active_arrangement_payments(debts, today),
        debt_amount=debt.amount,
        debt_monthly_payment=debt.monthly_payment,
        debt_status=status,
    )
