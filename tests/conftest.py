"""Shared fixtures: ORM record factories, an in-memory repository and the event patch."""

from __future__ import annotations

import contextlib
import itertools
import uuid
from collections.abc import AsyncIterator, Sequence
from datetime import date
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from src.models.arrangement import ArrangementProgress, PaymentPlanProposal
from src.models.budget import FixedCost, Income
from src.models.debt import Debt
from src.models.enums import DebtStatus, IncomeType, ProposalStatus, TemplateType
from src.schemas.letters import DebtorInfo

TODAY = date(2026, 3, 5)
USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


def make_debt(**fields: Any) -> Debt:
    values: dict[str, Any] = {
        "id": uuid.uuid4(),
        "user_id": USER_ID,
        "creditor_name": "Energie BV",
        "case_number": "ZK-2024-001",
        "amount": Decimal("500.00"),
        "status": DebtStatus.INACTIVE.value,
    }
    values.update(fields)
    return Debt(**values)


def make_income(amount: str, income_type: IncomeType = IncomeType.FIXED, **fields: Any) -> Income:
    return Income(
        id=uuid.uuid4(),
        user_id=USER_ID,
        income_type=income_type.value,
        amount=Decimal(amount),
        **fields,
    )


def make_cost(amount: str, **fields: Any) -> FixedCost:
    values: dict[str, Any] = {"is_active": True}
    values.update(fields)
    return FixedCost(id=uuid.uuid4(), user_id=USER_ID, amount=Decimal(amount), **values)


class FakeRepository:
    """In-memory ArrangementRepository.

    `fail_on` names write methods that raise, to exercise partial failures.
    Writes are not rolled back, like a collaborator without transactions.
    """

    def __init__(self) -> None:
        self.debts: dict[uuid.UUID, Debt] = {}
        self.incomes: list[Income] = []
        self.costs: list[FixedCost] = []
        self.progress: dict[uuid.UUID, ArrangementProgress] = {}
        self.proposals: list[PaymentPlanProposal] = []
        self.fail_on: set[str] = set()
        self.units_of_work = 0
        self._sequence = itertools.count()

    def add_debt(self, debt: Debt) -> Debt:
        self.debts[debt.id] = debt
        return debt

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail_on:
            raise RuntimeError(f"{method} unavailable")

    # Reads

    async def get_debt(self, debt_id: uuid.UUID) -> Debt | None:
        return self.debts.get(debt_id)

    async def list_debts(self, user_id: uuid.UUID) -> list[Debt]:
        return [d for d in self.debts.values() if d.user_id == user_id]

    async def list_incomes(self, user_id: uuid.UUID) -> list[Income]:
        return [i for i in self.incomes if i.user_id == user_id]

    async def list_fixed_costs(self, user_id: uuid.UUID) -> list[FixedCost]:
        return [c for c in self.costs if c.user_id == user_id]

    async def get_progress(self, debt_id: uuid.UUID) -> ArrangementProgress | None:
        return self.progress.get(debt_id)

    async def latest_proposal(
        self, debt_id: uuid.UUID, template_types: Sequence[TemplateType] | None = None
    ) -> PaymentPlanProposal | None:
        wanted = {t.value for t in template_types} if template_types else None
        matching = [
            p for p in self.proposals
            if p.debt_id == debt_id and (wanted is None or p.template_type in wanted)
        ]
        if not matching:
            return None
        return max(matching, key=lambda p: (p.sent_date, p._seq))  # type: ignore[attr-defined]

    # Writes

    async def create_progress(self, debt_id: uuid.UUID, **fields: Any) -> ArrangementProgress:
        self._maybe_fail("create_progress")
        values: dict[str, Any] = {
            "step_1_completed": False,
            "step_2_completed": False,
            "step_3_completed": False,
        }
        values.update(fields)
        progress = ArrangementProgress(id=uuid.uuid4(), debt_id=debt_id, **values)
        self.progress[debt_id] = progress
        return progress

    async def update_progress(self, progress: ArrangementProgress, **fields: Any) -> ArrangementProgress:
        self._maybe_fail("update_progress")
        for name, value in fields.items():
            setattr(progress, name, value)
        return progress

    async def create_proposal(self, debt_id: uuid.UUID, **fields: Any) -> PaymentPlanProposal:
        self._maybe_fail("create_proposal")
        values: dict[str, Any] = {"status": ProposalStatus.SENT.value}
        values.update(fields)
        proposal = PaymentPlanProposal(id=uuid.uuid4(), debt_id=debt_id, **values)
        proposal._seq = next(self._sequence)  # type: ignore[attr-defined]
        self.proposals.append(proposal)
        return proposal

    async def update_proposal(self, proposal: PaymentPlanProposal, **fields: Any) -> PaymentPlanProposal:
        self._maybe_fail("update_proposal")
        for name, value in fields.items():
            setattr(proposal, name, value)
        return proposal

    async def update_debt(self, debt: Debt, **fields: Any) -> Debt:
        self._maybe_fail("update_debt")
        for name, value in fields.items():
            setattr(debt, name, value)
        return debt

    @contextlib.asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[None]:
        self.units_of_work += 1
        yield


@pytest.fixture()
def repo() -> FakeRepository:
    return FakeRepository()


@pytest.fixture()
def debtor() -> DebtorInfo:
    return DebtorInfo(
        full_name="Jan Jansen",
        address="Kerkstraat 1",
        postcode="1234 AB",
        city="Utrecht",
        email="jan@example.nl",
    )


@pytest.fixture(autouse=True)
def emitted() -> AsyncMock:
    """Capture events instead of queueing them on the shared event bus."""
    mock = AsyncMock()
    with (
        patch("src.workflow.engine.emit", new=mock),
        patch("src.workflow.fsm.emit", new=mock),
    ):
        yield mock
