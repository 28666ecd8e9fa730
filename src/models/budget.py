"""Income and fixed-cost records — inputs for the affordability snapshot."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, RecordMixin, DebtorOwnedMixin
from src.models.enums import IncomeType


class Income(RecordMixin, DebtorOwnedMixin, Base):
    """A fixed (recurring) or extra (one-off) income entry."""

    __tablename__ = "incomes"

    name: Mapped[str | None] = mapped_column(String(200))
    income_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=IncomeType.FIXED.value, comment="IncomeType enum value"
    )
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    monthly_equivalent: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), comment="Normalized monthly amount for non-monthly fixed income"
    )
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    booked_on: Mapped[date | None] = mapped_column("date", Date, comment="Booking date for extra income")
    is_active: Mapped[bool | None] = mapped_column(Boolean)

    def __repr__(self) -> str:
        return f"<Income type={self.income_type} amount={self.amount}>"


class FixedCost(RecordMixin, DebtorOwnedMixin, Base):
    """A recurring monthly cost (rent, insurance, subscriptions)."""

    __tablename__ = "fixed_costs"

    name: Mapped[str | None] = mapped_column(String(200))
    category: Mapped[str | None] = mapped_column(String(50))
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<FixedCost name={self.name} amount={self.amount}>"
