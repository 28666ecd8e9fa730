"""Debt model — a single claim of a creditor against the debtor.

The workflow engine drives `status` and the resolution fields; everything else
is maintained by the surrounding application.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, RecordMixin, DebtorOwnedMixin
from src.models.enums import DebtStatus


class Debt(RecordMixin, DebtorOwnedMixin, Base):
    """An outstanding claim (invoice, collection case, loan arrears)."""

    __tablename__ = "debts"

    # Creditor
    creditor_name: Mapped[str | None] = mapped_column(String(200))
    case_number: Mapped[str | None] = mapped_column(String(100), comment="Dossier number / kenmerk")

    # Amounts
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    amount_paid: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    original_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), comment="Principal (hoofdsom)")
    interest_costs: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    collection_costs: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    # Arrangement
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=DebtStatus.INACTIVE.value, comment="DebtStatus enum value"
    )
    monthly_payment: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    payment_plan_date: Mapped[date | None] = mapped_column(Date)
    start_date: Mapped[date | None] = mapped_column(Date)

    # Resolution
    resolved_date: Mapped[date | None] = mapped_column(Date)
    resolved_reason: Mapped[str | None] = mapped_column(String(50), comment="ResolvedReason enum value")

    def __repr__(self) -> str:
        return f"<Debt creditor={self.creditor_name} amount={self.amount} status={self.status}>"
