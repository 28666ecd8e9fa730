"""SQLAlchemy ORM models for the records the engine reads and writes.

Import all models here so Alembic and Base.metadata.create_all() discover them.
"""

from __future__ import annotations

from src.models.arrangement import ArrangementProgress, PaymentPlanProposal
from src.models.base import Base
from src.models.budget import FixedCost, Income
from src.models.debt import Debt
from src.models.enums import (
    CreditorResponse,
    DebtStatus,
    DisputeReason,
    IncassoReason,
    IncomeType,
    ProposalStatus,
    ResolutionKind,
    ResolvedReason,
    TemplateType,
    WorkflowAction,
    WorkflowState,
    WriteStep,
)

__all__ = [
    # Base
    "Base",
    # Models
    "Debt",
    "Income",
    "FixedCost",
    "ArrangementProgress",
    "PaymentPlanProposal",
    # Enums
    "DebtStatus",
    "TemplateType",
    "ProposalStatus",
    "CreditorResponse",
    "ResolutionKind",
    "WorkflowState",
    "WorkflowAction",
    "DisputeReason",
    "IncassoReason",
    "ResolvedReason",
    "WriteStep",
    "IncomeType",
]
