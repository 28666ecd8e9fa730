"""Persistence collaborator for the arrangement workflow.

The engine only talks to the ArrangementRepository protocol. The SQLAlchemy
implementation runs each workflow step inside a SAVEPOINT, so a failed write
leaves nothing of that step behind for the next read; committing the outer
transaction stays with the caller (see src.db.engine.get_session).
"""

from __future__ import annotations

import contextlib
import logging
import uuid
from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.arrangement import ArrangementProgress, PaymentPlanProposal
from src.models.budget import FixedCost, Income
from src.models.debt import Debt
from src.models.enums import TemplateType

logger = logging.getLogger(__name__)


class ArrangementRepository(Protocol):
    """Reads and writes the engine needs from the surrounding application."""

    async def get_debt(self, debt_id: uuid.UUID) -> Debt | None: ...

    async def list_debts(self, user_id: uuid.UUID) -> list[Debt]: ...

    async def list_incomes(self, user_id: uuid.UUID) -> list[Income]: ...

    async def list_fixed_costs(self, user_id: uuid.UUID) -> list[FixedCost]: ...

    async def get_progress(self, debt_id: uuid.UUID) -> ArrangementProgress | None: ...

    async def latest_proposal(
        self, debt_id: uuid.UUID, template_types: Sequence[TemplateType] | None = None
    ) -> PaymentPlanProposal | None: ...

    async def create_progress(self, debt_id: uuid.UUID, **fields: Any) -> ArrangementProgress: ...

    async def update_progress(self, progress: ArrangementProgress, **fields: Any) -> ArrangementProgress: ...

    async def create_proposal(self, debt_id: uuid.UUID, **fields: Any) -> PaymentPlanProposal: ...

    async def update_proposal(self, proposal: PaymentPlanProposal, **fields: Any) -> PaymentPlanProposal: ...

    async def update_debt(self, debt: Debt, **fields: Any) -> Debt: ...

    def unit_of_work(self) -> contextlib.AbstractAsyncContextManager[None]: ...


class SqlArrangementRepository:
    """ArrangementRepository on a SQLAlchemy async session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Reads ────────────────────────────────────────────────────────

    async def get_debt(self, debt_id: uuid.UUID) -> Debt | None:
        return await self.session.get(Debt, debt_id)

    async def list_debts(self, user_id: uuid.UUID) -> list[Debt]:
        result = await self.session.execute(select(Debt).where(Debt.user_id == user_id))
        return list(result.scalars().all())

    async def list_incomes(self, user_id: uuid.UUID) -> list[Income]:
        result = await self.session.execute(select(Income).where(Income.user_id == user_id))
        return list(result.scalars().all())

    async def list_fixed_costs(self, user_id: uuid.UUID) -> list[FixedCost]:
        result = await self.session.execute(select(FixedCost).where(FixedCost.user_id == user_id))
        return list(result.scalars().all())

    async def get_progress(self, debt_id: uuid.UUID) -> ArrangementProgress | None:
        result = await self.session.execute(
            select(ArrangementProgress).where(ArrangementProgress.debt_id == debt_id)
        )
        return result.scalar_one_or_none()

    async def latest_proposal(
        self, debt_id: uuid.UUID, template_types: Sequence[TemplateType] | None = None
    ) -> PaymentPlanProposal | None:
        """Most recent proposal for a debt by sent date, optionally filtered by type."""
        stmt = select(PaymentPlanProposal).where(PaymentPlanProposal.debt_id == debt_id)
        if template_types:
            stmt = stmt.where(PaymentPlanProposal.template_type.in_([t.value for t in template_types]))
        stmt = stmt.order_by(PaymentPlanProposal.sent_date.desc(), PaymentPlanProposal.created_at.desc()).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # ── Writes ───────────────────────────────────────────────────────

    async def create_progress(self, debt_id: uuid.UUID, **fields: Any) -> ArrangementProgress:
        progress = ArrangementProgress(debt_id=debt_id, **fields)
        self.session.add(progress)
        await self.session.flush()
        return progress

    async def update_progress(self, progress: ArrangementProgress, **fields: Any) -> ArrangementProgress:
        return await self._update(progress, fields)

    async def create_proposal(self, debt_id: uuid.UUID, **fields: Any) -> PaymentPlanProposal:
        proposal = PaymentPlanProposal(debt_id=debt_id, **fields)
        self.session.add(proposal)
        await self.session.flush()
        return proposal

    async def update_proposal(self, proposal: PaymentPlanProposal, **fields: Any) -> PaymentPlanProposal:
        return await self._update(proposal, fields)

    async def update_debt(self, debt: Debt, **fields: Any) -> Debt:
        return await self._update(debt, fields)

    @contextlib.asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[None]:
        async with self.session.begin_nested():
            yield

    # ── Internal helpers ─────────────────────────────────────────────

    async def _update(self, record: Any, fields: dict[str, Any]) -> Any:
        for name, value in fields.items():
            setattr(record, name, value)
        await self.session.flush()
        return record
