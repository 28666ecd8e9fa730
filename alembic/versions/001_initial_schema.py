"""Initial schema — debts, budget records and the arrangement workflow tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, tuple[str, ...], None] = None
depends_on: Union[str, tuple[str, ...], None] = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    # ── Budget and debt records (owned by a debtor) ────────────────────

    op.create_table(
        "debts",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("creditor_name", sa.String(200)),
        sa.Column("case_number", sa.String(100), comment="Dossier number / kenmerk"),
        sa.Column("amount", sa.Numeric(12, 2)),
        sa.Column("amount_paid", sa.Numeric(12, 2)),
        sa.Column("original_amount", sa.Numeric(12, 2), comment="Principal (hoofdsom)"),
        sa.Column("interest_costs", sa.Numeric(12, 2)),
        sa.Column("collection_costs", sa.Numeric(12, 2)),
        sa.Column("status", sa.String(30), nullable=False, comment="DebtStatus enum value"),
        sa.Column("monthly_payment", sa.Numeric(12, 2)),
        sa.Column("payment_plan_date", sa.Date()),
        sa.Column("start_date", sa.Date()),
        sa.Column("resolved_date", sa.Date()),
        sa.Column("resolved_reason", sa.String(50), comment="ResolvedReason enum value"),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "incomes",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("name", sa.String(200)),
        sa.Column("income_type", sa.String(20), nullable=False, comment="IncomeType enum value"),
        sa.Column("amount", sa.Numeric(12, 2)),
        sa.Column("monthly_equivalent", sa.Numeric(12, 2), comment="Normalized monthly amount for non-monthly fixed income"),
        sa.Column("start_date", sa.Date()),
        sa.Column("end_date", sa.Date()),
        sa.Column("date", sa.Date(), comment="Booking date for extra income"),
        sa.Column("is_active", sa.Boolean()),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "fixed_costs",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("name", sa.String(200)),
        sa.Column("category", sa.String(50)),
        sa.Column("amount", sa.Numeric(12, 2)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ── Arrangement workflow (FK → debts) ──────────────────────────────

    op.create_table(
        "arrangement_progress",
        sa.Column("debt_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("step_1_completed", sa.Boolean(), nullable=False),
        sa.Column("step_2_completed", sa.Boolean(), nullable=False),
        sa.Column("step_3_completed", sa.Boolean(), nullable=False),
        sa.Column("letter_sent_date", sa.Date()),
        sa.Column("resolution_plan", postgresql.JSONB(astext_type=sa.Text()), comment="ResolutionPlan snapshot"),
        sa.Column("proposed_amount", sa.Numeric(12, 2)),
        sa.Column("letter_content", sa.Text(), comment="Draft letter frozen at step 1"),
        sa.Column("letter_payload", postgresql.JSONB(astext_type=sa.Text()), comment="Payload the frozen letter was built from"),
        sa.Column("creditor_response", sa.String(20), comment="CreditorResponse enum value"),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["debt_id"], ["debts.id"]),
    )
    op.create_index("ix_arrangement_progress_debt_id", "arrangement_progress", ["debt_id"], unique=True)

    op.create_table(
        "payment_plan_proposals",
        sa.Column("debt_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("template_type", sa.String(40), nullable=False, comment="TemplateType enum value"),
        sa.Column("letter_content", sa.Text(), nullable=False),
        sa.Column("sent_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, comment="ProposalStatus enum value"),
        sa.Column("response_date", sa.Date()),
        sa.Column("proposed_monthly_amount", sa.Numeric(12, 2)),
        sa.Column("dispute_reason", sa.String(100)),
        sa.Column("dispute_details", sa.Text()),
        sa.Column("recognized_amount", sa.Numeric(12, 2)),
        sa.Column("disputed_amount", sa.Numeric(12, 2)),
        sa.Column("requested_new_amount", sa.Numeric(12, 2)),
        sa.Column("requested_duration_months", sa.Integer()),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), comment="Full strategy payload as submitted"),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["debt_id"], ["debts.id"]),
    )


def downgrade() -> None:
    # Drop in reverse dependency order
    op.drop_table("payment_plan_proposals")
    op.drop_index("ix_arrangement_progress_debt_id", table_name="arrangement_progress")
    op.drop_table("arrangement_progress")
    op.drop_table("fixed_costs")
    op.drop_table("incomes")
    op.drop_table("debts")
