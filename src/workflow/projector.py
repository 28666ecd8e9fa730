"""Debt status projector — the decision table from (context, outcome) to debt update.

This table is the only place where the strategy of the last letter and the
creditor's response jointly decide the debt's next state. Several rows share a
target status for different reasons; `resolved_reason` keeps them apart.

Context is derived from the latest proposal's template type; for the mainline
proposal it is further split by the resolution plan, and for collection-cost
objections by whether the original principal was already paid.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from src.models.enums import (
    CreditorResponse,
    DebtStatus,
    ProposalStatus,
    ResolutionKind,
    ResolvedReason,
    TemplateType,
)
from src.schemas.workflow import DebtStatusChange


class Context(str, Enum):
    MAINLINE_INSTALLMENT = "mainline_installment"
    MAINLINE_NO_CAPACITY = "mainline_no_capacity"
    MAINLINE_PAY_IN_FULL = "mainline_pay_in_full"
    DISPUTE = "dispute"
    PARTIAL_RECOGNITION = "partial_recognition"
    ALREADY_PAID = "already_paid"
    VERJARING = "verjaring"
    INCASSOKOSTEN_PRINCIPAL_PAID = "incassokosten_principal_paid"
    INCASSOKOSTEN_PRINCIPAL_OPEN = "incassokosten_principal_open"
    LOWERING_AMOUNT = "lowering_amount"
    PAYMENT_HOLIDAY = "payment_holiday"
    STOP_DEBT_COUNSELING = "stop_debt_counseling"


class Effect(str, Enum):
    """Field changes on the debt beyond status and resolution."""

    NONE = "none"
    START_PLAN = "start_plan"                      # monthly_payment = plan offer, payment_plan_date = today
    REDUCE_TO_RECOGNIZED = "reduce_to_recognized"  # amount = recognized amount
    WAIVE_COLLECTION_COSTS = "waive_collection_costs"  # amount −= collection costs
    LOWER_PAYMENT = "lower_payment"                # monthly_payment = requested amount


REMINDER_ADVICE = "Geen reactie ontvangen: stuur een herinnering."
MANUAL_FOLLOW_UP_ADVICE = "Afgewezen: beoordeel de reactie en overweeg juridisch advies."


@dataclass(frozen=True)
class Rule:
    """One cell of the decision table."""

    proposal_status: ProposalStatus
    debt_status: DebtStatus | None = None          # None: leave the debt status unchanged
    resolved_reason: ResolvedReason | None = None
    closes_debt: bool = False                      # sets resolved_date
    effect: Effect = Effect.NONE
    advice: str | None = None


_A, _R, _N = CreditorResponse.ACCEPTED, CreditorResponse.REJECTED, CreditorResponse.NO_RESPONSE
_ACCEPTED, _REJECTED, _REMINDER = ProposalStatus.ACCEPTED, ProposalStatus.REJECTED, ProposalStatus.REMINDER_SENT

DECISION_TABLE: dict[tuple[Context, CreditorResponse], Rule] = {
    # Mainline, installment plan
    (Context.MAINLINE_INSTALLMENT, _A): Rule(_ACCEPTED, DebtStatus.BETALINGSREGELING, effect=Effect.START_PLAN),
    (Context.MAINLINE_INSTALLMENT, _R): Rule(_REJECTED, DebtStatus.INACTIVE),
    (Context.MAINLINE_INSTALLMENT, _N): Rule(_REMINDER, DebtStatus.INACTIVE, advice=REMINDER_ADVICE),
    # Mainline, debt-rest request
    (Context.MAINLINE_NO_CAPACITY, _A): Rule(_ACCEPTED, DebtStatus.PAUZE, ResolvedReason.DEBT_REST_GRANTED),
    (Context.MAINLINE_NO_CAPACITY, _R): Rule(_REJECTED, DebtStatus.INACTIVE),
    (Context.MAINLINE_NO_CAPACITY, _N): Rule(_REMINDER, DebtStatus.INACTIVE, advice=REMINDER_ADVICE),
    # Mainline, pay in full
    (Context.MAINLINE_PAY_IN_FULL, _A): Rule(
        _ACCEPTED, DebtStatus.AFBETAALD, ResolvedReason.ONE_TIME_PAYMENT, closes_debt=True
    ),
    (Context.MAINLINE_PAY_IN_FULL, _R): Rule(_REJECTED, DebtStatus.INACTIVE),
    (Context.MAINLINE_PAY_IN_FULL, _N): Rule(_REMINDER, DebtStatus.INACTIVE, advice=REMINDER_ADVICE),
    # Full dispute
    (Context.DISPUTE, _A): Rule(_ACCEPTED, DebtStatus.AFBETAALD, ResolvedReason.DISPUTE_ACCEPTED, closes_debt=True),
    (Context.DISPUTE, _R): Rule(_REJECTED, DebtStatus.INACTIVE),
    (Context.DISPUTE, _N): Rule(_REMINDER, advice=REMINDER_ADVICE),
    # Partial recognition
    (Context.PARTIAL_RECOGNITION, _A): Rule(
        _ACCEPTED,
        DebtStatus.BETALINGSREGELING,
        ResolvedReason.PARTIAL_RECOGNITION_ACCEPTED,
        effect=Effect.REDUCE_TO_RECOGNIZED,
    ),
    (Context.PARTIAL_RECOGNITION, _R): Rule(_REJECTED, DebtStatus.INACTIVE),
    (Context.PARTIAL_RECOGNITION, _N): Rule(_REMINDER, advice=REMINDER_ADVICE),
    # Already paid
    (Context.ALREADY_PAID, _A): Rule(
        _ACCEPTED, DebtStatus.AFBETAALD, ResolvedReason.ALREADY_PAID_CONFIRMED, closes_debt=True
    ),
    (Context.ALREADY_PAID, _R): Rule(_REJECTED, DebtStatus.INACTIVE, advice=MANUAL_FOLLOW_UP_ADVICE),
    (Context.ALREADY_PAID, _N): Rule(_REMINDER, advice=REMINDER_ADVICE),
    # Statute of limitations
    (Context.VERJARING, _A): Rule(_ACCEPTED, DebtStatus.AFBETAALD, ResolvedReason.TIME_BARRED, closes_debt=True),
    (Context.VERJARING, _R): Rule(_REJECTED, DebtStatus.INACTIVE, advice=MANUAL_FOLLOW_UP_ADVICE),
    (Context.VERJARING, _N): Rule(_REMINDER, advice=REMINDER_ADVICE),
    # Collection-cost objection, principal already paid: nothing left once costs are waived
    (Context.INCASSOKOSTEN_PRINCIPAL_PAID, _A): Rule(
        _ACCEPTED,
        DebtStatus.AFBETAALD,
        ResolvedReason.COLLECTION_COSTS_WAIVED,
        closes_debt=True,
        effect=Effect.WAIVE_COLLECTION_COSTS,
    ),
    (Context.INCASSOKOSTEN_PRINCIPAL_PAID, _R): Rule(_REJECTED, DebtStatus.INACTIVE, advice=MANUAL_FOLLOW_UP_ADVICE),
    (Context.INCASSOKOSTEN_PRINCIPAL_PAID, _N): Rule(_REMINDER, advice=REMINDER_ADVICE),
    # Collection-cost objection, principal still open
    (Context.INCASSOKOSTEN_PRINCIPAL_OPEN, _A): Rule(
        _ACCEPTED,
        DebtStatus.INACTIVE,
        ResolvedReason.COLLECTION_COSTS_WAIVED,
        effect=Effect.WAIVE_COLLECTION_COSTS,
    ),
    (Context.INCASSOKOSTEN_PRINCIPAL_OPEN, _R): Rule(_REJECTED, DebtStatus.INACTIVE, advice=MANUAL_FOLLOW_UP_ADVICE),
    (Context.INCASSOKOSTEN_PRINCIPAL_OPEN, _N): Rule(_REMINDER, advice=REMINDER_ADVICE),
    # Lower the monthly amount of a running plan; the old plan continues otherwise
    (Context.LOWERING_AMOUNT, _A): Rule(
        _ACCEPTED, DebtStatus.BETALINGSREGELING, ResolvedReason.AMOUNT_LOWERED, effect=Effect.LOWER_PAYMENT
    ),
    (Context.LOWERING_AMOUNT, _R): Rule(_REJECTED, DebtStatus.BETALINGSREGELING),
    (Context.LOWERING_AMOUNT, _N): Rule(_REMINDER, DebtStatus.BETALINGSREGELING, advice=REMINDER_ADVICE),
    # Payment holiday on a running plan
    (Context.PAYMENT_HOLIDAY, _A): Rule(_ACCEPTED, DebtStatus.PAUZE, ResolvedReason.PAYMENT_HOLIDAY_GRANTED),
    (Context.PAYMENT_HOLIDAY, _R): Rule(_REJECTED, DebtStatus.BETALINGSREGELING),
    (Context.PAYMENT_HOLIDAY, _N): Rule(_REMINDER, DebtStatus.BETALINGSREGELING, advice=REMINDER_ADVICE),
    # Stop plan and enter debt counseling; the debt is already paused on send
    (Context.STOP_DEBT_COUNSELING, _A): Rule(
        _ACCEPTED, DebtStatus.PAUZE, ResolvedReason.DEBT_COUNSELING_REQUESTED
    ),
    (Context.STOP_DEBT_COUNSELING, _R): Rule(_REJECTED, DebtStatus.INACTIVE, advice=MANUAL_FOLLOW_UP_ADVICE),
    (Context.STOP_DEBT_COUNSELING, _N): Rule(_REMINDER, advice=REMINDER_ADVICE),
}


@dataclass(frozen=True)
class SendRule:
    debt_status: DebtStatus
    resolved_reason: ResolvedReason | None = None


# Debt status applied the moment a letter is sent
SEND_TABLE: dict[TemplateType, SendRule] = {
    TemplateType.PROPOSAL: SendRule(DebtStatus.WACHTEND),
    TemplateType.DISPUTE: SendRule(DebtStatus.WACHTEND),
    TemplateType.PARTIAL_RECOGNITION: SendRule(DebtStatus.WACHTEND),
    TemplateType.ALREADY_PAID: SendRule(DebtStatus.WACHTEND),
    TemplateType.VERJARING: SendRule(DebtStatus.WACHTEND),
    TemplateType.INCASSOKOSTEN_BEZWAAR: SendRule(DebtStatus.WACHTEND),
    TemplateType.LOWERING_AMOUNT: SendRule(DebtStatus.WACHTEND),
    TemplateType.PAYMENT_HOLIDAY: SendRule(DebtStatus.WACHTEND),
    TemplateType.STOP_DEBT_COUNSELING: SendRule(DebtStatus.PAUZE, ResolvedReason.DEBT_COUNSELING_REQUESTED),
}

_MAINLINE: dict[ResolutionKind, Context] = {
    ResolutionKind.INSTALLMENT: Context.MAINLINE_INSTALLMENT,
    ResolutionKind.NO_CAPACITY: Context.MAINLINE_NO_CAPACITY,
    ResolutionKind.PAY_IN_FULL: Context.MAINLINE_PAY_IN_FULL,
}

_STRATEGY: dict[TemplateType, Context] = {
    TemplateType.DISPUTE: Context.DISPUTE,
    TemplateType.PARTIAL_RECOGNITION: Context.PARTIAL_RECOGNITION,
    TemplateType.ALREADY_PAID: Context.ALREADY_PAID,
    TemplateType.VERJARING: Context.VERJARING,
    TemplateType.LOWERING_AMOUNT: Context.LOWERING_AMOUNT,
    TemplateType.PAYMENT_HOLIDAY: Context.PAYMENT_HOLIDAY,
    TemplateType.STOP_DEBT_COUNSELING: Context.STOP_DEBT_COUNSELING,
}


def context_for(
    template_type: TemplateType,
    plan_kind: ResolutionKind | None = None,
    principal_paid: bool = False,
) -> Context:
    """Map the latest letter to its decision-table context.

    Raises:
        ValueError: A mainline proposal without a plan kind.
    """
    if template_type == TemplateType.PROPOSAL:
        if plan_kind is None:
            raise ValueError("Mainline proposal context needs a resolution plan")
        return _MAINLINE[plan_kind]
    if template_type == TemplateType.INCASSOKOSTEN_BEZWAAR:
        return Context.INCASSOKOSTEN_PRINCIPAL_PAID if principal_paid else Context.INCASSOKOSTEN_PRINCIPAL_OPEN
    return _STRATEGY[template_type]


def project(context: Context, outcome: CreditorResponse) -> Rule:
    """Look up the rule for a context and creditor outcome."""
    return DECISION_TABLE[(context, outcome)]


def debt_updates(
    rule: Rule,
    *,
    today: date,
    current_amount: Decimal | None = None,
    plan_monthly_amount: Decimal | None = None,
    recognized_amount: Decimal | None = None,
    collection_costs: Decimal | None = None,
    requested_monthly_amount: Decimal | None = None,
) -> dict[str, Any]:
    """Field updates for the debt record implied by `rule`."""
    updates: dict[str, Any] = {}
    if rule.debt_status is not None:
        updates["status"] = rule.debt_status.value
    if rule.resolved_reason is not None:
        updates["resolved_reason"] = rule.resolved_reason.value
    if rule.closes_debt:
        updates["resolved_date"] = today

    if rule.effect == Effect.START_PLAN:
        updates["monthly_payment"] = plan_monthly_amount
        updates["payment_plan_date"] = today
        updates["start_date"] = today
    elif rule.effect == Effect.REDUCE_TO_RECOGNIZED and recognized_amount is not None:
        updates["amount"] = recognized_amount
    elif rule.effect == Effect.WAIVE_COLLECTION_COSTS and current_amount is not None and collection_costs:
        updates["amount"] = max(Decimal("0"), current_amount - collection_costs)
        updates["collection_costs"] = Decimal("0")
    elif rule.effect == Effect.LOWER_PAYMENT and requested_monthly_amount is not None:
        updates["monthly_payment"] = requested_monthly_amount

    return updates


def known_status(value: str | None) -> DebtStatus | None:
    """DebtStatus for a stored status value; None when empty or not a value we know."""
    if not value:
        return None
    try:
        return DebtStatus(value)
    except ValueError:
        return None


def describe_change(
    previous_status: str | None, rule: Rule, updates: dict[str, Any]
) -> DebtStatusChange:
    """Wrap applied updates into the DebtStatusChange reported to the caller."""
    return DebtStatusChange(
        previous_status=known_status(previous_status),
        new_status=rule.debt_status,
        updates=updates,
        resolved_reason=rule.resolved_reason,
        advice=rule.advice,
    )
