"""Request/response schemas at the workflow boundary (engine and HTTP API)."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import (
    CreditorResponse,
    DebtStatus,
    ProposalStatus,
    ResolvedReason,
    TemplateType,
    WorkflowAction,
    WorkflowState,
)
from src.schemas.affordability import AffordabilityBreakdown, ResolutionPlan
from src.schemas.letters import DebtorInfo, Letter


class DebtStatusChange(BaseModel):
    """Fields the engine wrote to the debt record in one step."""

    model_config = ConfigDict(frozen=True)

    previous_status: DebtStatus | None
    new_status: DebtStatus | None              # None: status left unchanged
    updates: dict[str, Any] = Field(default_factory=dict)
    resolved_reason: ResolvedReason | None = None
    advice: str | None = None                  # follow-up hint for the user


class ProposalView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    template_type: TemplateType
    status: ProposalStatus
    sent_date: date
    response_date: date | None = None
    proposed_monthly_amount: Decimal | None = None
    letter_content: str


class WorkflowRequest(BaseModel):
    """One call of advance_workflow()."""

    action: WorkflowAction
    debtor: DebtorInfo = Field(default_factory=DebtorInfo)
    outcome: CreditorResponse | None = None          # record_response
    payload: dict[str, Any] | None = None            # mark_sent / complete_step1 overrides
    creditor: dict[str, Any] | None = None           # creditor address details for the letter


class WorkflowResult(BaseModel):
    """Outcome of a workflow action."""

    debt_id: uuid.UUID
    new_state: WorkflowState
    letter: Letter | None = None
    debt_status_change: DebtStatusChange | None = None
    proposal: ProposalView | None = None

    @property
    def letter_text(self) -> str | None:
        return self.letter.text if self.letter is not None else None


class WorkflowView(BaseModel):
    """Everything a presentation layer needs to render a debt's workflow."""

    debt_id: uuid.UUID
    state: WorkflowState
    valid_actions: list[WorkflowAction]
    breakdown: AffordabilityBreakdown
    plan: ResolutionPlan | None = None      # None when the debt has no positive amount
    letter_content: str | None = None       # draft frozen at step 1, if any
    latest_proposal: ProposalView | None = None
