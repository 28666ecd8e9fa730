"""Tests for the debt status projector decision table."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.models.enums import (
    CreditorResponse,
    DebtStatus,
    ProposalStatus,
    ResolutionKind,
    ResolvedReason,
    TemplateType,
)
from src.workflow.projector import (
    DECISION_TABLE,
    REMINDER_ADVICE,
    SEND_TABLE,
    Context,
    Effect,
    context_for,
    debt_updates,
    describe_change,
    known_status,
    project,
)

TODAY = date(2026, 3, 5)
ACCEPTED, REJECTED, NO_RESPONSE = CreditorResponse.ACCEPTED, CreditorResponse.REJECTED, CreditorResponse.NO_RESPONSE


class TestTableCompleteness:
    def test_every_context_and_outcome_has_a_rule(self) -> None:
        for context in Context:
            for outcome in CreditorResponse:
                assert (context, outcome) in DECISION_TABLE, f"missing {context.value}/{outcome.value}"

    def test_every_template_type_has_a_send_rule(self) -> None:
        assert set(SEND_TABLE) == set(TemplateType)

    def test_proposal_status_follows_outcome(self) -> None:
        expected = {
            ACCEPTED: ProposalStatus.ACCEPTED,
            REJECTED: ProposalStatus.REJECTED,
            NO_RESPONSE: ProposalStatus.REMINDER_SENT,
        }
        for (_, outcome), rule in DECISION_TABLE.items():
            assert rule.proposal_status == expected[outcome]


class TestMainline:
    @pytest.mark.parametrize("kind,outcome,status,reason", [
        (ResolutionKind.INSTALLMENT, ACCEPTED, DebtStatus.BETALINGSREGELING, None),
        (ResolutionKind.INSTALLMENT, REJECTED, DebtStatus.INACTIVE, None),
        (ResolutionKind.INSTALLMENT, NO_RESPONSE, DebtStatus.INACTIVE, None),
        (ResolutionKind.NO_CAPACITY, ACCEPTED, DebtStatus.PAUZE, ResolvedReason.DEBT_REST_GRANTED),
        (ResolutionKind.NO_CAPACITY, REJECTED, DebtStatus.INACTIVE, None),
        (ResolutionKind.NO_CAPACITY, NO_RESPONSE, DebtStatus.INACTIVE, None),
        (ResolutionKind.PAY_IN_FULL, ACCEPTED, DebtStatus.AFBETAALD, ResolvedReason.ONE_TIME_PAYMENT),
        (ResolutionKind.PAY_IN_FULL, REJECTED, DebtStatus.INACTIVE, None),
        (ResolutionKind.PAY_IN_FULL, NO_RESPONSE, DebtStatus.INACTIVE, None),
    ])
    def test_rows(self, kind, outcome, status, reason) -> None:
        rule = project(context_for(TemplateType.PROPOSAL, plan_kind=kind), outcome)
        assert rule.debt_status == status
        assert rule.resolved_reason == reason

    def test_installment_no_response_suggests_reminder(self) -> None:
        rule = project(Context.MAINLINE_INSTALLMENT, NO_RESPONSE)
        assert rule.advice == REMINDER_ADVICE

    def test_accepted_installment_starts_plan(self) -> None:
        rule = project(Context.MAINLINE_INSTALLMENT, ACCEPTED)
        updates = debt_updates(rule, today=TODAY, plan_monthly_amount=Decimal("50"))
        assert updates == {
            "status": "betalingsregeling",
            "monthly_payment": Decimal("50"),
            "payment_plan_date": TODAY,
            "start_date": TODAY,
        }

    def test_pay_in_full_closes_debt(self) -> None:
        updates = debt_updates(project(Context.MAINLINE_PAY_IN_FULL, ACCEPTED), today=TODAY)
        assert updates["status"] == "afbetaald"
        assert updates["resolved_reason"] == "eenmalige_betaling_overeengekomen"
        assert updates["resolved_date"] == TODAY

    def test_mainline_without_plan_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            context_for(TemplateType.PROPOSAL)


class TestStrategies:
    @pytest.mark.parametrize("template_type,status,reason", [
        (TemplateType.DISPUTE, DebtStatus.AFBETAALD, ResolvedReason.DISPUTE_ACCEPTED),
        (TemplateType.PARTIAL_RECOGNITION, DebtStatus.BETALINGSREGELING, ResolvedReason.PARTIAL_RECOGNITION_ACCEPTED),
        (TemplateType.ALREADY_PAID, DebtStatus.AFBETAALD, ResolvedReason.ALREADY_PAID_CONFIRMED),
        (TemplateType.VERJARING, DebtStatus.AFBETAALD, ResolvedReason.TIME_BARRED),
        (TemplateType.LOWERING_AMOUNT, DebtStatus.BETALINGSREGELING, ResolvedReason.AMOUNT_LOWERED),
        (TemplateType.PAYMENT_HOLIDAY, DebtStatus.PAUZE, ResolvedReason.PAYMENT_HOLIDAY_GRANTED),
        (TemplateType.STOP_DEBT_COUNSELING, DebtStatus.PAUZE, ResolvedReason.DEBT_COUNSELING_REQUESTED),
    ])
    def test_accepted(self, template_type, status, reason) -> None:
        rule = project(context_for(template_type), ACCEPTED)
        assert rule.debt_status == status
        assert rule.resolved_reason == reason

    @pytest.mark.parametrize("template_type", [
        TemplateType.DISPUTE,
        TemplateType.PARTIAL_RECOGNITION,
        TemplateType.ALREADY_PAID,
        TemplateType.VERJARING,
        TemplateType.INCASSOKOSTEN_BEZWAAR,
        TemplateType.STOP_DEBT_COUNSELING,
    ])
    def test_no_response_leaves_debt_status(self, template_type) -> None:
        rule = project(context_for(template_type), NO_RESPONSE)
        assert rule.debt_status is None
        assert rule.proposal_status == ProposalStatus.REMINDER_SENT
        assert debt_updates(rule, today=TODAY) == {}

    @pytest.mark.parametrize("template_type", [TemplateType.ALREADY_PAID, TemplateType.VERJARING])
    def test_rejected_defense_advises_follow_up(self, template_type) -> None:
        rule = project(context_for(template_type), REJECTED)
        assert rule.debt_status == DebtStatus.INACTIVE
        assert rule.advice is not None

    @pytest.mark.parametrize("template_type", [TemplateType.LOWERING_AMOUNT, TemplateType.PAYMENT_HOLIDAY])
    def test_rejected_modification_keeps_plan(self, template_type) -> None:
        for outcome in (REJECTED, NO_RESPONSE):
            assert project(context_for(template_type), outcome).debt_status == DebtStatus.BETALINGSREGELING

    def test_several_rows_share_afbetaald_with_distinct_reasons(self) -> None:
        reasons = {
            rule.resolved_reason
            for rule in DECISION_TABLE.values()
            if rule.debt_status == DebtStatus.AFBETAALD
        }
        assert len(reasons) >= 5


class TestEffects:
    def test_partial_recognition_reduces_amount(self) -> None:
        rule = project(Context.PARTIAL_RECOGNITION, ACCEPTED)
        assert rule.effect == Effect.REDUCE_TO_RECOGNIZED
        updates = debt_updates(rule, today=TODAY, current_amount=Decimal("500"), recognized_amount=Decimal("300"))
        assert updates["amount"] == Decimal("300")
        assert updates["status"] == "betalingsregeling"

    def test_lowering_sets_requested_payment(self) -> None:
        updates = debt_updates(
            project(Context.LOWERING_AMOUNT, ACCEPTED), today=TODAY, requested_monthly_amount=Decimal("20")
        )
        assert updates["monthly_payment"] == Decimal("20")

    def test_incasso_principal_open_waives_costs(self) -> None:
        rule = project(context_for(TemplateType.INCASSOKOSTEN_BEZWAAR, principal_paid=False), ACCEPTED)
        assert rule.debt_status == DebtStatus.INACTIVE
        updates = debt_updates(
            rule, today=TODAY, current_amount=Decimal("540"), collection_costs=Decimal("40")
        )
        assert updates["amount"] == Decimal("500")
        assert updates["collection_costs"] == Decimal("0")
        assert "resolved_date" not in updates

    def test_incasso_principal_paid_closes_debt(self) -> None:
        rule = project(context_for(TemplateType.INCASSOKOSTEN_BEZWAAR, principal_paid=True), ACCEPTED)
        updates = debt_updates(rule, today=TODAY, current_amount=Decimal("40"), collection_costs=Decimal("75"))
        assert updates["status"] == "afbetaald"
        assert updates["amount"] == Decimal("0")
        assert updates["resolved_date"] == TODAY


class TestSendTable:
    def test_letters_put_debt_on_hold(self) -> None:
        for template_type, rule in SEND_TABLE.items():
            if template_type == TemplateType.STOP_DEBT_COUNSELING:
                continue
            assert rule.debt_status == DebtStatus.WACHTEND

    def test_stop_debt_counseling_pauses(self) -> None:
        rule = SEND_TABLE[TemplateType.STOP_DEBT_COUNSELING]
        assert rule.debt_status == DebtStatus.PAUZE
        assert rule.resolved_reason == ResolvedReason.DEBT_COUNSELING_REQUESTED


class TestDescribeChange:
    def test_wraps_rule(self) -> None:
        rule = project(Context.DISPUTE, ACCEPTED)
        updates = debt_updates(rule, today=TODAY)
        change = describe_change("wachtend", rule, updates)
        assert change.previous_status == DebtStatus.WACHTEND
        assert change.new_status == DebtStatus.AFBETAALD
        assert change.resolved_reason == ResolvedReason.DISPUTE_ACCEPTED
        assert change.updates == updates

    def test_unknown_previous_status_is_none(self) -> None:
        rule = project(Context.DISPUTE, ACCEPTED)
        change = describe_change("actief_oud", rule, debt_updates(rule, today=TODAY))
        assert change.previous_status is None
        assert change.new_status == DebtStatus.AFBETAALD

    @pytest.mark.parametrize("value, expected", [
        ("betalingsregeling", DebtStatus.BETALINGSREGELING),
        ("", None),
        (None, None),
        ("Afbetaald", None),
    ])
    def test_known_status(self, value, expected) -> None:
        assert known_status(value) == expected
