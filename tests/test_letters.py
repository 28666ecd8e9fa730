"""Tests for letter building.

Covers:
- Dutch euro/date formatting
- Placeholder policy (missing data is bracketed, never blank)
- Determinism under a frozen date
- Per-strategy content, subject and attachment metadata
- Strategy payload parsing and required-field validation
- DebtorInfo.from_profile address parsing
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.calculators.affordability import compute_breakdown, compute_resolution_plan
from src.letters import FieldResolver, build_letter, format_date, format_euro
from src.models.enums import ResolutionKind, TemplateType
from src.schemas.affordability import FinancialSnapshot
from src.schemas.letters import (
    AlreadyPaidPayload,
    CreditorInfo,
    DebtorInfo,
    DisputePayload,
    IncassokostenPayload,
    PartialRecognitionPayload,
    ProposalPayload,
    VerjaringPayload,
    parse_payload,
    validate_payload,
)
from src.workflow.errors import InvalidInputError

TODAY = date(2026, 3, 5)


@pytest.fixture()
def creditor() -> CreditorInfo:
    return CreditorInfo(
        name="Energie BV",
        address="Postbus 100",
        postcode="3500 AA",
        city="Utrecht",
        case_number="ZK-2024-001",
        amount=Decimal("245.50"),
        original_amount=Decimal("1000"),
    )


def _plan(income: str, costs: str, amount: str):
    breakdown = compute_breakdown(FinancialSnapshot(fixed_monthly_income=income, fixed_monthly_costs=costs))
    return breakdown, compute_resolution_plan(breakdown, Decimal(amount))


class TestFormatting:
    def test_euro_thousands(self) -> None:
        assert format_euro(Decimal("1234.56")) == "€ 1.234,56"

    def test_euro_millions(self) -> None:
        assert format_euro(Decimal("1234567.891")) == "€ 1.234.567,89"

    def test_euro_zero(self) -> None:
        assert format_euro(0) == "€ 0,00"

    def test_euro_negative(self) -> None:
        assert format_euro(Decimal("-5")) == "€ -5,00"

    def test_date_not_padded(self) -> None:
        assert format_date(date(2026, 3, 5)) == "5-3-2026"


class TestFieldResolver:
    def test_value_wins(self) -> None:
        f = FieldResolver()
        assert f.text("name", "Jan", "Piet") == "Jan"
        assert f.placeholders == ()

    def test_fallback_used(self) -> None:
        f = FieldResolver()
        assert f.text("name", "  ", None, "Piet") == "Piet"

    def test_placeholder_recorded_once(self) -> None:
        f = FieldResolver()
        assert f.amount("amount", None, label="bedrag") == "[bedrag]"
        assert f.amount("amount", None, label="bedrag") == "[bedrag]"
        assert f.placeholders == ("amount",)

    def test_zero_is_a_value(self) -> None:
        f = FieldResolver()
        assert f.amount("amount", Decimal("0")) == "€ 0,00"


class TestPlaceholderPolicy:
    @pytest.mark.parametrize("payload", [
        ProposalPayload(),
        ProposalPayload(style="juridisch_loket"),
        DisputePayload(reason="other"),
        PartialRecognitionPayload(),
        AlreadyPaidPayload(),
        VerjaringPayload(),
        IncassokostenPayload(),
        parse_payload({"template_type": "lowering_amount"}),
        parse_payload({"template_type": "payment_holiday"}),
        parse_payload({"template_type": "stop_debt_counseling"}),
    ])
    def test_missing_fields_become_placeholders(self, payload) -> None:
        letter = build_letter(payload, DebtorInfo(), CreditorInfo(), TODAY)
        assert letter.placeholders
        assert not letter.is_complete
        assert "None" not in letter.text
        assert "[]" not in letter.text
        assert "case_number" in letter.placeholders
        assert "[dossiernummer invullen]" in letter.text

    def test_received_date_falls_back_to_today(self) -> None:
        letter = build_letter(VerjaringPayload(), DebtorInfo(), CreditorInfo(), TODAY)
        assert "Op 5-3-2026 kreeg ik van u een brief" in letter.text
        assert "received_letter_date" not in letter.placeholders


class TestDeterminism:
    def test_identical_output(self, debtor: DebtorInfo, creditor: CreditorInfo) -> None:
        breakdown, plan = _plan("2000", "1500", "245.50")
        payload = ProposalPayload(plan=plan)
        first = build_letter(payload, debtor, creditor, TODAY, breakdown)
        second = build_letter(payload, debtor, creditor, TODAY, breakdown)
        assert first == second
        assert first.text == second.text

    def test_filename(self, debtor: DebtorInfo, creditor: CreditorInfo) -> None:
        letter = build_letter(VerjaringPayload(), debtor, creditor, TODAY)
        assert letter.filename == "brief_verjaring_energie-bv_2026-03-05.txt"


class TestProposalLetters:
    def test_installment(self, debtor: DebtorInfo, creditor: CreditorInfo) -> None:
        breakdown, plan = _plan("2000", "1500", "245.50")
        assert plan.kind == ResolutionKind.INSTALLMENT
        letter = build_letter(ProposalPayload(plan=plan), debtor, creditor, TODAY, breakdown)
        assert letter.subject == "Betalingsregeling - Dossier ZK-2024-001"
        assert "€ 50,00" in letter.text
        assert "gedurende circa 5 maanden" in letter.text
        assert "Vast maandelijks inkomen: € 2.000,00" in letter.text
        assert letter.is_complete

    def test_pay_in_full(self, debtor: DebtorInfo, creditor: CreditorInfo) -> None:
        breakdown, plan = _plan("3000", "1000", "245.50")
        assert plan.kind == ResolutionKind.PAY_IN_FULL
        letter = build_letter(ProposalPayload(plan=plan), debtor, creditor, TODAY, breakdown)
        assert letter.subject.startswith("Volledige betaling")
        assert "€ 245,50" in letter.text
        assert "in één keer" in letter.text

    def test_pause_request(self, debtor: DebtorInfo, creditor: CreditorInfo) -> None:
        breakdown, plan = _plan("1800", "1750", "245.50")
        letter = build_letter(ProposalPayload(plan=plan), debtor, creditor, TODAY, breakdown)
        assert letter.subject.startswith("Verzoek pauzering invordering")
        assert "invordering te pauzeren" in letter.text

    def test_formal_installment_letter(self, debtor: DebtorInfo) -> None:
        creditor = CreditorInfo(name="Incasso BV", case_number="INC-9", amount=Decimal("100"))
        payload = ProposalPayload(
            style="juridisch_loket",
            monthly_amount=Decimal("25"),
            include_first_payment=True,
            first_payment_amount=Decimal("25"),
            first_payment_date=date(2026, 4, 1),
        )
        letter = build_letter(payload, debtor, creditor, TODAY)
        assert "in 4 gelijke termijnen van € 25,00" in letter.text
        assert "Op 1-4-2026 zal ik de eerste termijn van € 25,00 overmaken." in letter.text
        assert letter.text.endswith("Bijlage: kopie invorderingsbrief")
        assert letter.attachment_hint == "Kopie invorderingsbrief"
        assert "Utrecht, 5-3-2026" in letter.text


class TestStrategyLetters:
    def test_dispute_already_paid_is_complete(self, debtor: DebtorInfo, creditor: CreditorInfo) -> None:
        payload = DisputePayload(
            reason="already_paid",
            payment_date=date(2026, 2, 10),
            payment_reference="BETAALD-7781",
            received_letter_date=date(2026, 3, 1),
        )
        letter = build_letter(payload, debtor, creditor, TODAY)
        assert "10-2-2026" in letter.text
        assert "BETAALD-7781" in letter.text
        assert letter.placeholders == ()
        assert letter.subject == "Betwisting vordering - Dossier ZK-2024-001"
        assert letter.attachment_hint == "Kopie van het betalingsbewijs"
        assert letter.template_type == TemplateType.DISPUTE

    def test_partial_recognition_derives_disputed_amount(
        self, debtor: DebtorInfo, creditor: CreditorInfo
    ) -> None:
        payload = PartialRecognitionPayload(recognized_amount=Decimal("200"), dispute_reason="Dubbel gefactureerd")
        letter = build_letter(payload, debtor, creditor, TODAY)
        assert "Ik erken een bedrag van € 200,00" in letter.text
        assert "Het resterende bedrag van € 45,50 betwist ik" in letter.text

    def test_already_paid_attachment(self, debtor: DebtorInfo, creditor: CreditorInfo) -> None:
        payload = AlreadyPaidPayload(
            payment_date=date(2026, 1, 15),
            payment_amount=Decimal("245.50"),
            payment_reference="REF-1",
        )
        letter = build_letter(payload, debtor, creditor, TODAY)
        assert letter.attachment_hint == "Bewijs van betaling"
        assert "Op 15-1-2026 heb ik € 245,50 overgemaakt met kenmerk REF-1." in letter.text

    def test_incasso_above_maximum_uses_statutory_cap(
        self, debtor: DebtorInfo, creditor: CreditorInfo
    ) -> None:
        payload = IncassokostenPayload(reason="D", incasso_amount=Decimal("300"), received_letter_date=TODAY)
        letter = build_letter(payload, debtor, creditor, TODAY)
        assert "maximaal € 150,00 rekenen" in letter.text
        assert "binnen 7 dagen" in letter.text

    def test_incasso_defective_reminder_lists_issues(
        self, debtor: DebtorInfo, creditor: CreditorInfo
    ) -> None:
        payload = IncassokostenPayload(
            reason="B",
            incasso_amount=Decimal("40"),
            reason_b_issues=["geen termijn van 14 dagen", "bedrag ontbreekt"],
        )
        letter = build_letter(payload, debtor, creditor, TODAY)
        assert "• geen termijn van 14 dagen\n• bedrag ontbreekt" in letter.text

    def test_contact_person_greeting(self, debtor: DebtorInfo) -> None:
        creditor = CreditorInfo(name="Incasso BV", contact_person="De Vries")
        letter = build_letter(VerjaringPayload(), debtor, creditor, TODAY)
        assert "Geachte heer, mevrouw De Vries," in letter.text


class TestPayloadValidation:
    def test_unknown_template_type(self) -> None:
        with pytest.raises(InvalidInputError):
            parse_payload({"template_type": "bribe"})

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            parse_payload({"template_type": "verjaring", "amount": 5})
        assert any("amount" in field for field in exc_info.value.fields)

    def test_dispute_already_paid_requires_reference(self) -> None:
        payload = parse_payload({"template_type": "dispute", "reason": "already_paid", "payment_date": "2026-02-10"})
        with pytest.raises(InvalidInputError) as exc_info:
            validate_payload(payload)
        assert exc_info.value.fields == ["payment_reference"]

    def test_dispute_never_received_needs_nothing_else(self) -> None:
        validate_payload(parse_payload({"template_type": "dispute", "reason": "never_received"}))

    def test_vtlb_proposal_requires_plan(self) -> None:
        with pytest.raises(InvalidInputError):
            validate_payload(ProposalPayload())

    def test_formal_letter_rejected_without_installment(self) -> None:
        _, plan = _plan("1800", "1750", "245.50")
        assert plan.kind == ResolutionKind.NO_CAPACITY
        with pytest.raises(InvalidInputError) as exc_info:
            validate_payload(ProposalPayload(style="juridisch_loket", plan=plan))
        assert exc_info.value.fields == ["monthly_amount"]

    def test_formal_letter_rejected_for_pay_in_full_plan(self) -> None:
        _, plan = _plan("2000", "1000", "100")
        assert plan.kind == ResolutionKind.PAY_IN_FULL
        with pytest.raises(InvalidInputError):
            validate_payload(ProposalPayload(style="juridisch_loket", plan=plan))

    def test_formal_letter_with_own_amount(self) -> None:
        _, plan = _plan("1800", "1750", "245.50")
        validate_payload(ProposalPayload(style="juridisch_loket", plan=plan, monthly_amount=Decimal("25")))

    def test_formal_letter_rejects_zero_amount(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            validate_payload(ProposalPayload(style="juridisch_loket", monthly_amount=Decimal("0")))
        assert exc_info.value.fields == ["monthly_amount"]

    def test_partial_recognition_below_claim(self, creditor: CreditorInfo) -> None:
        payload = PartialRecognitionPayload(recognized_amount=Decimal("245.50"), dispute_reason="x")
        with pytest.raises(InvalidInputError) as exc_info:
            validate_payload(payload, creditor)
        assert exc_info.value.fields == ["recognized_amount"]

    def test_verjaring_requires_received_date(self) -> None:
        with pytest.raises(InvalidInputError):
            validate_payload(VerjaringPayload())

    def test_incasso_paid_after_reminder_requires_payment_date(self) -> None:
        payload = IncassokostenPayload(reason="C", incasso_amount=Decimal("40"), received_letter_date=TODAY)
        with pytest.raises(InvalidInputError) as exc_info:
            validate_payload(payload)
        assert exc_info.value.fields == ["reason_c_payment_date"]

    def test_lowering_requires_positive_amount(self) -> None:
        payload = parse_payload({"template_type": "lowering_amount", "requested_new_amount": "0"})
        with pytest.raises(InvalidInputError):
            validate_payload(payload)


class TestDebtorProfile:
    def test_parses_combined_address(self) -> None:
        debtor = DebtorInfo.from_profile("Jan Jansen", "Kerkstraat 1, 1234ab Utrecht", "jan@example.nl")
        assert debtor.address == "Kerkstraat 1"
        assert debtor.postcode == "1234 AB"
        assert debtor.city == "Utrecht"

    def test_unparseable_address_kept_whole(self) -> None:
        debtor = DebtorInfo.from_profile("Jan Jansen", "ergens in Utrecht")
        assert debtor.address == "ergens in Utrecht"
        assert debtor.postcode is None

    def test_no_address(self) -> None:
        assert DebtorInfo.from_profile("Jan Jansen", None).address is None
