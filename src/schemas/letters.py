"""Schemas for letter building — parties, strategy payloads and the built letter.

Each strategy is one payload variant, discriminated by `template_type`.
A payload carries only the fields its letter needs; all of them are optional
at the type level because missing values render as bracketed placeholders.
`validate_payload()` enforces the fields a strategy cannot be sent without.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from src.models.enums import DisputeReason, IncassoReason, ResolutionKind, TemplateType
from src.schemas.affordability import ResolutionPlan
from src.workflow.errors import InvalidInputError

# "Kerkstraat 1, 1234 AB Utrecht"
_ADDRESS_RE = re.compile(r"^\s*(?P<street>[^,]+?)\s*,\s*(?P<postcode>\d{4}\s?[A-Za-z]{2})\s+(?P<city>.+?)\s*$")


# ── Parties ──────────────────────────────────────────────────────────


class DebtorInfo(BaseModel):
    """The person sending the letter."""

    model_config = ConfigDict(frozen=True)

    full_name: str | None = None
    address: str | None = None
    postcode: str | None = None
    city: str | None = None
    email: str | None = None

    @classmethod
    def from_profile(cls, full_name: str | None, address: str | None, email: str | None = None) -> DebtorInfo:
        """Build from a profile whose address is one line ("Straat 1, 1234 AB Plaats").

        An address that does not match the pattern is kept whole as the street line.
        """
        if not address:
            return cls(full_name=full_name, email=email)
        match = _ADDRESS_RE.match(address)
        if match is None:
            return cls(full_name=full_name, address=address.strip(), email=email)
        postcode = match.group("postcode").upper()
        if " " not in postcode:
            postcode = f"{postcode[:4]} {postcode[4:]}"
        return cls(
            full_name=full_name,
            address=match.group("street"),
            postcode=postcode,
            city=match.group("city"),
            email=email,
        )


class CreditorInfo(BaseModel):
    """The creditor or collection agency, plus the claim as they stated it."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    department: str | None = None
    address: str | None = None
    postcode: str | None = None
    city: str | None = None
    contact_person: str | None = None

    # Claim
    case_number: str | None = None
    amount: Decimal | None = None
    original_amount: Decimal | None = None    # principal (hoofdsom)
    monthly_payment: Decimal | None = None    # current arrangement, if any


# ── Strategy payloads ────────────────────────────────────────────────


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    received_letter_date: date | None = None


class ProposalPayload(_Payload):
    """Mainline letter: budget-substantiated (`vtlb`) or the formal installment letter."""

    template_type: Literal["proposal"] = "proposal"
    style: Literal["vtlb", "juridisch_loket"] = "vtlb"
    plan: ResolutionPlan | None = None            # required for vtlb
    monthly_amount: Decimal | None = None         # juridisch_loket; falls back to the plan's offer
    include_first_payment: bool = False
    first_payment_amount: Decimal | None = None
    first_payment_date: date | None = None


class DisputePayload(_Payload):
    template_type: Literal["dispute"] = "dispute"
    reason: DisputeReason
    payment_date: date | None = None       # already_paid
    payment_reference: str | None = None   # already_paid
    cancel_date: date | None = None        # cancelled
    correct_amount: Decimal | None = None  # amount_wrong
    other_reason: str | None = None        # other


class PartialRecognitionPayload(_Payload):
    template_type: Literal["partial_recognition"] = "partial_recognition"
    recognized_amount: Decimal | None = None
    disputed_amount: Decimal | None = None  # defaults to claim − recognized
    dispute_reason: str | None = None
    dispute_details: str | None = None


class AlreadyPaidPayload(_Payload):
    template_type: Literal["already_paid"] = "already_paid"
    payment_date: date | None = None
    payment_amount: Decimal | None = None
    payment_reference: str | None = None


class VerjaringPayload(_Payload):
    template_type: Literal["verjaring"] = "verjaring"


class IncassokostenPayload(_Payload):
    template_type: Literal["incassokosten_bezwaar"] = "incassokosten_bezwaar"
    reason: IncassoReason | None = None
    incasso_amount: Decimal | None = None
    product_name: str | None = None
    document_type: str = "rekening"
    reason_b_issues: list[str] = Field(default_factory=list)
    reason_c_payment_date: date | None = None
    reason_c_payment_reference: str | None = None
    reason_d_max_amount: Decimal | None = None   # defaults to the statutory maximum
    original_payment_status: Literal["paid", "unpaid"] = "unpaid"
    original_paid_date: date | None = None


class LoweringAmountPayload(_Payload):
    template_type: Literal["lowering_amount"] = "lowering_amount"
    requested_new_amount: Decimal | None = None


class PaymentHolidayPayload(_Payload):
    template_type: Literal["payment_holiday"] = "payment_holiday"
    requested_duration_months: int | None = None


class StopDebtCounselingPayload(_Payload):
    template_type: Literal["stop_debt_counseling"] = "stop_debt_counseling"
    counseling_organization: str | None = None


StrategyPayload = Annotated[
    Union[
        ProposalPayload,
        DisputePayload,
        PartialRecognitionPayload,
        AlreadyPaidPayload,
        VerjaringPayload,
        IncassokostenPayload,
        LoweringAmountPayload,
        PaymentHolidayPayload,
        StopDebtCounselingPayload,
    ],
    Field(discriminator="template_type"),
]

_payload_adapter: TypeAdapter[StrategyPayload] = TypeAdapter(StrategyPayload)


def parse_payload(data: dict[str, Any]) -> StrategyPayload:
    """Parse a raw form submission into its payload variant.

    Raises:
        InvalidInputError: Unknown template type or malformed fields.
    """
    try:
        return _payload_adapter.validate_python(data)
    except ValidationError as exc:
        fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
        raise InvalidInputError(f"Invalid strategy payload: {exc.error_count()} error(s)", fields=fields) from exc


def _require(payload: _Payload, *names: str) -> None:
    missing = [n for n in names if getattr(payload, n) in (None, "", [])]
    if missing:
        raise InvalidInputError(
            f"{getattr(payload, 'template_type')} letter requires: {', '.join(missing)}", fields=missing
        )


def _require_positive(payload: _Payload, name: str) -> None:
    value = getattr(payload, name)
    if value is None or value <= 0:
        raise InvalidInputError(f"{name} must be greater than 0", fields=[name])


def validate_payload(payload: StrategyPayload, creditor: CreditorInfo | None = None) -> None:
    """Reject payloads missing fields their strategy cannot be sent without.

    Everything not checked here may be absent and renders as a placeholder.
    """
    if isinstance(payload, ProposalPayload):
        if payload.style == "vtlb":
            _require(payload, "plan")
        elif payload.monthly_amount is not None:
            _require_positive(payload, "monthly_amount")
        elif payload.plan is None or payload.plan.kind != ResolutionKind.INSTALLMENT:
            # the formal letter is always an installment offer
            raise InvalidInputError(
                "juridisch_loket letter requires monthly_amount or an installment plan", fields=["monthly_amount"]
            )

    elif isinstance(payload, DisputePayload):
        required = {
            DisputeReason.ALREADY_PAID: ("payment_date", "payment_reference"),
            DisputeReason.CANCELLED: ("cancel_date",),
            DisputeReason.AMOUNT_WRONG: ("correct_amount",),
            DisputeReason.OTHER: ("other_reason",),
        }.get(payload.reason, ())
        _require(payload, *required)

    elif isinstance(payload, PartialRecognitionPayload):
        _require_positive(payload, "recognized_amount")
        _require(payload, "dispute_reason")
        claim = creditor.amount if creditor is not None else None
        if claim is not None and payload.recognized_amount >= claim:  # type: ignore[operator]
            raise InvalidInputError(
                "recognized_amount must be lower than the claimed amount", fields=["recognized_amount"]
            )

    elif isinstance(payload, AlreadyPaidPayload):
        _require(payload, "payment_date", "payment_amount", "payment_reference")

    elif isinstance(payload, VerjaringPayload):
        _require(payload, "received_letter_date")

    elif isinstance(payload, IncassokostenPayload):
        _require(payload, "received_letter_date", "reason")
        _require_positive(payload, "incasso_amount")
        if payload.reason == IncassoReason.DEFECTIVE_REMINDER:
            _require(payload, "reason_b_issues")
        elif payload.reason == IncassoReason.PAID_AFTER_REMINDER:
            _require(payload, "reason_c_payment_date")

    elif isinstance(payload, LoweringAmountPayload):
        _require_positive(payload, "requested_new_amount")

    elif isinstance(payload, PaymentHolidayPayload):
        _require_positive(payload, "requested_duration_months")


# ── Output ───────────────────────────────────────────────────────────


class Letter(BaseModel):
    """A built letter plus its metadata. Text is ready to copy and send."""

    model_config = ConfigDict(frozen=True)

    template_type: TemplateType
    subject: str
    text: str
    attachment_hint: str | None = None
    placeholders: tuple[str, ...] = ()   # fields rendered as [placeholder]
    filename: str

    @property
    def is_complete(self) -> bool:
        return not self.placeholders
