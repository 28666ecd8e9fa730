"""Financial calculators — affordability split, resolution plan, snapshot aggregation, WIK cap."""

from src.calculators.affordability import compute_breakdown, compute_resolution_plan
from src.calculators.incasso import max_collection_costs
from src.calculators.snapshot import build_snapshot

__all__ = [
    "compute_breakdown",
    "compute_resolution_plan",
    "max_collection_costs",
    "build_snapshot",
]
