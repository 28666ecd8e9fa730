"""Domain enums used across SQLAlchemy models and Pydantic schemas.

All enums use str mixin for JSON serialization. Values are the Dutch codes
stored by the persistence collaborator.
"""

from __future__ import annotations

from enum import Enum


class DebtStatus(str, Enum):
    """Externally visible status of a debt — driven by the workflow engine."""

    INACTIVE = "niet_actief"
    ACTIVE = "actief"                      # legacy: active with monthly payment
    BETALINGSREGELING = "betalingsregeling"  # installment plan running
    AFBETAALD = "afbetaald"                # paid off / closed
    WACHTEND = "wachtend"                  # letter sent, awaiting creditor
    PAUZE = "pauze"                        # collection paused


class TemplateType(str, Enum):
    """Letter / strategy type of a PaymentPlanProposal."""

    PROPOSAL = "proposal"
    DISPUTE = "dispute"
    PARTIAL_RECOGNITION = "partial_recognition"
    ALREADY_PAID = "already_paid"
    VERJARING = "verjaring"                       # statute of limitations
    INCASSOKOSTEN_BEZWAAR = "incassokosten_bezwaar"  # collection-cost objection
    LOWERING_AMOUNT = "lowering_amount"
    PAYMENT_HOLIDAY = "payment_holiday"
    STOP_DEBT_COUNSELING = "stop_debt_counseling"


class ProposalStatus(str, Enum):
    """Lifecycle of a single sent letter. Anything other than SENT is terminal."""

    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    REMINDER_SENT = "reminder_sent"


class CreditorResponse(str, Enum):
    """Creditor outcome recorded in step 3."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    NO_RESPONSE = "no_response"


class ResolutionKind(str, Enum):
    """Shape of the computed resolution plan."""

    PAY_IN_FULL = "pay_in_full"
    INSTALLMENT = "installment"
    NO_CAPACITY = "no_capacity"  # debt-rest request


class WorkflowState(str, Enum):
    """Explicit arrangement workflow states."""

    BUDGET_REVIEW = "step1_budget_review"
    LETTER_DISPATCH = "step2_letter_dispatch"
    AWAITING_RESPONSE = "step3_awaiting_response"
    RESOLVED = "resolved"


class WorkflowAction(str, Enum):
    """Actions a presentation layer can request."""

    COMPLETE_STEP1 = "complete_step1"
    COMPLETE_STEP2 = "complete_step2"
    RECORD_RESPONSE = "record_response"
    MARK_SENT = "mark_sent"
    REOPEN = "reopen"


class DisputeReason(str, Enum):
    """Reason codes for a full dispute letter."""

    NEVER_RECEIVED = "never_received"
    ALREADY_PAID = "already_paid"
    CANCELLED = "cancelled"
    AMOUNT_WRONG = "amount_wrong"
    OTHER = "other"


class IncassoReason(str, Enum):
    """Reason codes (A–D) for a collection-cost objection."""

    NO_REMINDER = "A"
    DEFECTIVE_REMINDER = "B"
    PAID_AFTER_REMINDER = "C"
    ABOVE_MAXIMUM = "D"


class ResolvedReason(str, Enum):
    """Traceable reason stored on the debt when the projector closes or changes it."""

    ONE_TIME_PAYMENT = "eenmalige_betaling_overeengekomen"
    DISPUTE_ACCEPTED = "betwisting_erkend"
    PARTIAL_RECOGNITION_ACCEPTED = "gedeeltelijke_erkenning_erkend"
    ALREADY_PAID_CONFIRMED = "already_paid_confirmed"
    TIME_BARRED = "verjaard"
    COLLECTION_COSTS_WAIVED = "incassokosten_vervallen"
    AMOUNT_LOWERED = "maandbedrag_verlaagd"
    PAYMENT_HOLIDAY_GRANTED = "betalingsvakantie_toegekend"
    DEBT_COUNSELING_REQUESTED = "schuldhulp_aangevraagd"
    DEBT_REST_GRANTED = "schuldrust_toegekend"


class WriteStep(str, Enum):
    """Named writes of a single workflow step, in the order they are applied."""

    PROPOSAL = "proposal"
    DEBT_STATUS = "debt_status"
    PROGRESS = "progress"


class IncomeType(str, Enum):
    """Income record types supplied by the persistence collaborator."""

    FIXED = "vast"
    EXTRA = "extra"
