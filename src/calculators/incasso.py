"""Statutory maximum collection costs (WIK staffel).

Brackets over the principal:
  ≤ €2.500            → 15%
  €2.500 – €5.000     → €375 + 10% of the excess
  €5.000 – €10.000    → €625 + 5% of the excess
  €10.000 – €200.000  → €875 + 1% of the excess
  > €200.000          → €2.775 + 0,5% of the excess

Minimum €40, maximum €6.775; rounded to whole euros.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

MIN_COLLECTION_COSTS = Decimal("40")
MAX_COLLECTION_COSTS = Decimal("6775")

# (lower bound, base amount, rate over lower bound)
_STAFFEL: list[tuple[Decimal, Decimal, Decimal]] = [
    (Decimal("200000"), Decimal("2775"), Decimal("0.005")),
    (Decimal("10000"), Decimal("875"), Decimal("0.01")),
    (Decimal("5000"), Decimal("625"), Decimal("0.05")),
    (Decimal("2500"), Decimal("375"), Decimal("0.10")),
    (Decimal("0"), Decimal("0"), Decimal("0.15")),
]


def max_collection_costs(principal: Decimal) -> Decimal:
    """Maximum extrajudicial collection costs for a principal amount.

    Args:
        principal: Original claim (hoofdsom), excluding interest and costs.

    Returns:
        Whole-euro Decimal between €40 and €6.775.
    """
    if principal <= 0:
        return MIN_COLLECTION_COSTS

    for lower, base, rate in _STAFFEL:
        if principal > lower:
            costs = base + (principal - lower) * rate
            break
    else:
        costs = Decimal("0")

    costs = costs.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return min(max(costs, MIN_COLLECTION_COSTS), MAX_COLLECTION_COSTS)
