"""HTTP surface of the arrangement engine — FastAPI router.

Thin adapter: request bodies are parsed into schemas, the engine does the work,
and workflow errors are mapped to status codes by `register_error_handlers()`.
"""
# ruff: noqa: B008

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.calculators.affordability import compute_breakdown, compute_resolution_plan
from src.db.engine import get_session
from src.letters.templates import build_letter
from src.models.enums import DebtStatus
from src.schemas.affordability import AffordabilityBreakdown, FinancialSnapshot, RawAmount, ResolutionPlan
from src.schemas.letters import CreditorInfo, DebtorInfo, Letter, parse_payload, validate_payload
from src.schemas.workflow import WorkflowRequest, WorkflowResult, WorkflowView
from src.workflow.engine import ArrangementEngine
from src.workflow.errors import (
    DebtNotFoundError,
    InvalidInputError,
    PreconditionNotMetError,
    UpstreamWriteError,
)
from src.workflow.repository import SqlArrangementRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["arrangements"])


# ── Request bodies ───────────────────────────────────────────────────


class BreakdownRequest(BaseModel):
    fixed_monthly_income: RawAmount = None
    fixed_monthly_costs: RawAmount = None
    existing_arrangement_payments: RawAmount = None
    debt_amount: RawAmount = None
    debt_monthly_payment: RawAmount = None
    debt_status: DebtStatus | None = None


class BreakdownResponse(BaseModel):
    breakdown: AffordabilityBreakdown
    plan: ResolutionPlan | None = None


class LetterRequest(BaseModel):
    payload: dict[str, Any]
    debtor: DebtorInfo = Field(default_factory=DebtorInfo)
    creditor: CreditorInfo = Field(default_factory=CreditorInfo)
    today: date | None = None
    breakdown: AffordabilityBreakdown | None = None


# ── Dependencies ─────────────────────────────────────────────────────


async def get_engine(session: AsyncSession = Depends(get_session)) -> ArrangementEngine:
    return ArrangementEngine(SqlArrangementRepository(session))


# ── Routes ───────────────────────────────────────────────────────────


@router.get("/debts/{debt_id}/workflow", response_model=WorkflowView)
async def get_workflow(debt_id: uuid.UUID, engine: ArrangementEngine = Depends(get_engine)) -> WorkflowView:
    """Open or resume the workflow of a debt."""
    return await engine.open_workflow(debt_id)


@router.post("/debts/{debt_id}/workflow", response_model=WorkflowResult)
async def advance_workflow(
    debt_id: uuid.UUID,
    request: WorkflowRequest,
    engine: ArrangementEngine = Depends(get_engine),
) -> WorkflowResult:
    return await engine.advance_workflow(debt_id, request)


@router.get("/debts/{debt_id}/collection-cost-cap")
async def collection_cost_cap(
    debt_id: uuid.UUID, engine: ArrangementEngine = Depends(get_engine)
) -> dict[str, Decimal]:
    return {"max_collection_costs": await engine.collection_cost_cap(debt_id)}


@router.post("/affordability/breakdown", response_model=BreakdownResponse)
async def affordability_breakdown(request: BreakdownRequest) -> BreakdownResponse:
    """Stateless breakdown for a snapshot; the plan is included when a debt amount is given."""
    breakdown = compute_breakdown(FinancialSnapshot(**request.model_dump()))
    plan = None
    if request.debt_amount is not None:
        plan = compute_resolution_plan(breakdown, request.debt_amount)
    return BreakdownResponse(breakdown=breakdown, plan=plan)


@router.post("/letters/build", response_model=Letter)
async def letters_build(request: LetterRequest) -> Letter:
    """Preview a strategy letter without touching any debt."""
    payload = parse_payload(request.payload)
    validate_payload(payload, request.creditor)
    return build_letter(payload, request.debtor, request.creditor, request.today or date.today(), request.breakdown)


# ── Error mapping ────────────────────────────────────────────────────


async def _invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse({"error": "invalid_input", "detail": str(exc), "fields": exc.fields}, status_code=422)


async def _not_found(request: Request, exc: DebtNotFoundError) -> JSONResponse:
    return JSONResponse({"error": "not_found", "detail": str(exc)}, status_code=404)


async def _precondition(request: Request, exc: PreconditionNotMetError) -> JSONResponse:
    return JSONResponse({
        "error": "precondition_not_met",
        "detail": str(exc),
        "state": exc.state.value if exc.state else None,
        "action": exc.action.value if exc.action else None,
    }, status_code=409)


async def _upstream_write(request: Request, exc: UpstreamWriteError) -> JSONResponse:
    logger.error("Upstream write failed on %s: %s", request.url.path, exc)
    return JSONResponse({
        "error": "upstream_write_failed",
        "detail": str(exc),
        "failed_step": exc.failed_step.value,
        "completed_steps": [s.value for s in exc.completed_steps],
        "letter_text": exc.letter_text,
    }, status_code=502)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidInputError, _invalid_input)
    app.add_exception_handler(DebtNotFoundError, _not_found)
    app.add_exception_handler(PreconditionNotMetError, _precondition)
    app.add_exception_handler(UpstreamWriteError, _upstream_write)
