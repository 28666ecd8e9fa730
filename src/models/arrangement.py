"""Arrangement workflow records — per-debt progress and the sent-letter log.

ArrangementProgress: one row per debt, step flags of the three-step workflow.
PaymentPlanProposal: append-only, one row per letter instance sent.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, RecordMixin
from src.models.enums import ProposalStatus


class ArrangementProgress(RecordMixin, Base):
    """Workflow progress for a single debt."""

    __tablename__ = "arrangement_progress"

    debt_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("debts.id"), nullable=False, unique=True, index=True
    )

    # Step flags
    step_1_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    step_2_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    step_3_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    letter_sent_date: Mapped[date | None] = mapped_column(Date)

    # Frozen at step 1
    resolution_plan: Mapped[dict[str, Any] | None] = mapped_column(JSONB, comment="ResolutionPlan snapshot")
    proposed_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    letter_content: Mapped[str | None] = mapped_column(Text, comment="Draft letter frozen at step 1")
    letter_payload: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB, comment="Payload the frozen letter was built from"
    )

    # Step 3
    creditor_response: Mapped[str | None] = mapped_column(String(20), comment="CreditorResponse enum value")

    def __repr__(self) -> str:
        return (
            f"<ArrangementProgress debt={self.debt_id} "
            f"steps={self.step_1_completed}/{self.step_2_completed}/{self.step_3_completed}>"
        )


class PaymentPlanProposal(RecordMixin, Base):
    """A letter as it was sent to the creditor, plus strategy-specific fields."""

    __tablename__ = "payment_plan_proposals"

    debt_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("debts.id"), nullable=False, index=True
    )
    template_type: Mapped[str] = mapped_column(String(40), nullable=False, comment="TemplateType enum value")
    letter_content: Mapped[str] = mapped_column(Text, nullable=False)
    sent_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProposalStatus.SENT.value, comment="ProposalStatus enum value"
    )
    response_date: Mapped[date | None] = mapped_column(Date)

    # Strategy payload
    proposed_monthly_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    dispute_reason: Mapped[str | None] = mapped_column(String(100))
    dispute_details: Mapped[str | None] = mapped_column(Text)
    recognized_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    disputed_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    requested_new_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    requested_duration_months: Mapped[int | None] = mapped_column(Integer)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSONB, comment="Full strategy payload as submitted")

    def __repr__(self) -> str:
        return f"<PaymentPlanProposal type={self.template_type} status={self.status} sent={self.sent_date}>"
