"""Arrangement workflow engine — orchestrates one debt's negotiation with its creditor.

Pipeline per action:
1. Load the debt and its progress row; derive the workflow state from the flags
2. Check the action against the FSM (nothing is written when it is not allowed)
3. Compute affordability / build the letter / look up the projector rule
4. Apply the writes in a fixed order (proposal → debt status → progress)
   inside one repository unit of work
5. Advance the in-memory FSM and emit events

If a write fails the FSM does not advance; the caller gets an UpstreamWriteError
naming the failed write, the writes completed before it and the letter text.

Concurrent workflows for the same debt are not locked against each other: one
debtor works on one debt at a time.
"""

from __future__ import annotations

import contextlib
import logging
import uuid
from collections.abc import AsyncIterator, Callable
from datetime import date
from decimal import Decimal
from typing import Any

from src.calculators.affordability import compute_breakdown, compute_resolution_plan
from src.calculators.incasso import max_collection_costs
from src.calculators.snapshot import build_snapshot
from src.events import emit
from src.letters.templates import build_letter
from src.models.arrangement import ArrangementProgress, PaymentPlanProposal
from src.models.debt import Debt
from src.models.enums import (
    CreditorResponse,
    ProposalStatus,
    ResolutionKind,
    TemplateType,
    WorkflowAction,
    WriteStep,
)
from src.schemas.affordability import AffordabilityBreakdown, ResolutionPlan
from src.schemas.events import EventType, SystemEvent
from src.schemas.letters import (
    CreditorInfo,
    DebtorInfo,
    DisputePayload,
    IncassokostenPayload,
    Letter,
    LoweringAmountPayload,
    PartialRecognitionPayload,
    PaymentHolidayPayload,
    ProposalPayload,
    StrategyPayload,
    parse_payload,
    validate_payload,
)
from src.schemas.workflow import DebtStatusChange, ProposalView, WorkflowRequest, WorkflowResult, WorkflowView
from src.workflow import projector
from src.workflow.errors import (
    ArrangementError,
    DebtNotFoundError,
    InvalidInputError,
    PreconditionNotMetError,
    UpstreamWriteError,
)
from src.workflow.fsm import ArrangementFSM
from src.workflow.repository import ArrangementRepository
from src.workflow.states import flags_for, state_from_flags

logger = logging.getLogger(__name__)

_STEP_FLAGS_CLEARED: dict[str, Any] = {
    "step_1_completed": False,
    "step_2_completed": False,
    "step_3_completed": False,
    "letter_sent_date": None,
    "resolution_plan": None,
    "proposed_amount": None,
    "letter_content": None,
    "letter_payload": None,
    "creditor_response": None,
}


class _WriteTracker:
    """Names each write of a step and records which ones completed."""

    def __init__(self, debt_id: uuid.UUID, letter_text: str | None = None) -> None:
        self.debt_id = debt_id
        self.letter_text = letter_text
        self.completed: list[WriteStep] = []

    @contextlib.asynccontextmanager
    async def write(self, step: WriteStep) -> AsyncIterator[None]:
        try:
            yield
        except ArrangementError:
            raise
        except Exception as exc:
            logger.error(
                "Write %s failed for debt %s after %s: %s",
                step.value,
                self.debt_id,
                [s.value for s in self.completed] or "no writes",
                exc,
            )
            raise UpstreamWriteError(step, self.completed, self.letter_text, cause=exc) from exc
        self.completed.append(step)


class ArrangementEngine:
    """Drives the three-step arrangement workflow and the alternate strategy paths."""

    def __init__(self, repo: ArrangementRepository, clock: Callable[[], date] = date.today) -> None:
        self.repo = repo
        self.clock = clock

    # ── Public API ───────────────────────────────────────────────────

    async def compute(self, debt_id: uuid.UUID) -> tuple[AffordabilityBreakdown, ResolutionPlan | None]:
        """Breakdown and resolution plan for a debt from the current records."""
        debt = await self._get_debt(debt_id)
        return await self._compute(debt)

    async def collection_cost_cap(self, debt_id: uuid.UUID) -> Decimal:
        """Statutory maximum collection costs for a debt's principal."""
        debt = await self._get_debt(debt_id)
        principal = debt.original_amount if debt.original_amount is not None else debt.amount
        if principal is None:
            raise InvalidInputError("Debt has no principal amount", fields=["original_amount"])
        return max_collection_costs(principal)

    async def open_workflow(self, debt_id: uuid.UUID) -> WorkflowView:
        """Open (or resume) the workflow of a debt.

        Creates the progress row on first use. The resolution plan is None
        when the debt has no positive amount.
        """
        debt = await self._get_debt(debt_id)
        breakdown, plan = await self._compute(debt)
        progress = await self.repo.get_progress(debt_id)

        if progress is None:
            tracker = _WriteTracker(debt_id)
            try:
                async with self.repo.unit_of_work(), tracker.write(WriteStep.PROGRESS):
                    progress = await self.repo.create_progress(
                        debt_id,
                        **flags_for(state_from_flags(False, False, False)),
                        resolution_plan=plan.model_dump(mode="json") if plan else None,
                        proposed_amount=plan.proposed_monthly_amount if plan else None,
                    )
            except UpstreamWriteError as exc:
                await self._report_failure(debt_id, "open_workflow", exc)
                raise
            await emit(SystemEvent(
                event_type=EventType.WORKFLOW_OPENED,
                debt_id=debt_id,
                user_id=debt.user_id,
                data={"plan": plan.kind.value if plan else None},
                source_module="workflow.engine",
            ))

        fsm = self._fsm(debt_id, progress)
        latest = await self.repo.latest_proposal(debt_id)
        return WorkflowView(
            debt_id=debt_id,
            state=fsm.current_state,
            valid_actions=fsm.get_valid_actions(),
            breakdown=breakdown,
            plan=plan,
            letter_content=progress.letter_content,
            latest_proposal=ProposalView.model_validate(latest) if latest else None,
        )

    async def complete_step1(
        self,
        debt_id: uuid.UUID,
        debtor: DebtorInfo,
        creditor_details: dict[str, Any] | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> WorkflowResult:
        """Confirm the budget, freeze the mainline letter and move to letter dispatch.

        Args:
            overrides: Extra ProposalPayload fields, e.g. `style="juridisch_loket"`.

        Raises:
            InvalidInputError: The debt amount is missing or not positive, or a
                juridisch_loket letter has no installment amount to offer.
            PreconditionNotMetError: Step 1 is already completed.
        """
        debt = await self._get_debt(debt_id)
        progress = await self.repo.get_progress(debt_id)
        fsm = self._fsm(debt_id, progress)
        fsm.require(WorkflowAction.COMPLETE_STEP1)

        breakdown, _ = await self._compute(debt)
        plan = compute_resolution_plan(breakdown, debt.amount)
        creditor = self._creditor(debt, creditor_details)
        payload = self._payload({**(overrides or {}), "template_type": "proposal", "plan": plan})
        validate_payload(payload, creditor)
        letter = build_letter(payload, debtor, creditor, self.clock(), breakdown)

        fields = {
            "step_1_completed": True,
            "resolution_plan": plan.model_dump(mode="json"),
            "proposed_amount": payload.monthly_amount or plan.proposed_monthly_amount,
            "letter_content": letter.text,
            "letter_payload": payload.model_dump(mode="json"),
        }
        tracker = _WriteTracker(debt_id, letter.text)
        try:
            async with self.repo.unit_of_work(), tracker.write(WriteStep.PROGRESS):
                if progress is None:
                    progress = await self.repo.create_progress(
                        debt_id, **{**flags_for(fsm.current_state), **fields}
                    )
                else:
                    await self.repo.update_progress(progress, **fields)
        except UpstreamWriteError as exc:
            await self._report_failure(debt_id, WorkflowAction.COMPLETE_STEP1, exc)
            raise

        new_state = await fsm.transition(WorkflowAction.COMPLETE_STEP1)
        await self._letter_built(debt, letter)
        return WorkflowResult(debt_id=debt_id, new_state=new_state, letter=letter)

    async def complete_step2(self, debt_id: uuid.UUID) -> WorkflowResult:
        """Record that the frozen mainline letter was sent.

        Raises:
            PreconditionNotMetError: Step 1 not completed, the letter was already
                sent, or no letter text was frozen.
        """
        debt = await self._get_debt(debt_id)
        progress = await self.repo.get_progress(debt_id)
        fsm = self._fsm(debt_id, progress)
        fsm.require(WorkflowAction.COMPLETE_STEP2)
        assert progress is not None  # LETTER_DISPATCH implies a progress row
        if not progress.letter_content:
            raise PreconditionNotMetError(
                "No letter text to send; complete step 1 first",
                state=fsm.current_state,
                action=WorkflowAction.COMPLETE_STEP2,
            )

        today = self.clock()
        send_rule = projector.SEND_TABLE[TemplateType.PROPOSAL]
        proposal_fields = {
            "template_type": TemplateType.PROPOSAL.value,
            "letter_content": progress.letter_content,
            "proposed_monthly_amount": progress.proposed_amount,
            "payload": progress.letter_payload
            or {"template_type": "proposal", "plan": progress.resolution_plan},
        }
        tracker = _WriteTracker(debt_id, progress.letter_content)
        previous_status = debt.status
        try:
            async with self.repo.unit_of_work():
                async with tracker.write(WriteStep.PROPOSAL):
                    proposal = await self._send_proposal(debt_id, today, proposal_fields)
                async with tracker.write(WriteStep.DEBT_STATUS):
                    updates = self._send_updates(send_rule)
                    await self.repo.update_debt(debt, **updates)
                async with tracker.write(WriteStep.PROGRESS):
                    await self.repo.update_progress(progress, step_2_completed=True, letter_sent_date=today)
        except UpstreamWriteError as exc:
            await self._report_failure(debt_id, WorkflowAction.COMPLETE_STEP2, exc)
            raise

        new_state = await fsm.transition(WorkflowAction.COMPLETE_STEP2)
        change = DebtStatusChange(
            previous_status=projector.known_status(previous_status),
            new_status=send_rule.debt_status,
            updates=updates,
            resolved_reason=send_rule.resolved_reason,
        )
        await self._proposal_sent(debt, proposal, change)
        return WorkflowResult(
            debt_id=debt_id,
            new_state=new_state,
            debt_status_change=change,
            proposal=ProposalView.model_validate(proposal),
        )

    async def mark_sent(
        self,
        debt_id: uuid.UUID,
        payload: StrategyPayload | dict[str, Any],
        debtor: DebtorInfo,
        creditor_details: dict[str, Any] | None = None,
    ) -> WorkflowResult:
        """Send a strategy letter directly, bypassing the budget step.

        Validates the strategy fields, builds the letter, records the proposal,
        updates the debt status and marks steps 1 and 2 complete.

        Raises:
            InvalidInputError: Required strategy fields are missing.
            PreconditionNotMetError: A letter was already sent in this round.
        """
        debt = await self._get_debt(debt_id)
        progress = await self.repo.get_progress(debt_id)
        fsm = self._fsm(debt_id, progress)
        fsm.require(WorkflowAction.MARK_SENT)

        if isinstance(payload, dict):
            payload = self._payload(payload)
        breakdown: AffordabilityBreakdown | None = None
        if isinstance(payload, ProposalPayload) and (payload.style == "vtlb" or payload.plan is None):
            breakdown, _ = await self._compute(debt)
            if payload.plan is None:
                payload = payload.model_copy(update={"plan": compute_resolution_plan(breakdown, debt.amount)})

        creditor = self._creditor(debt, creditor_details)
        validate_payload(payload, creditor)
        today = self.clock()
        letter = build_letter(payload, debtor, creditor, today, breakdown)
        template_type = TemplateType(payload.template_type)
        send_rule = projector.SEND_TABLE[template_type]

        progress_fields: dict[str, Any] = {
            **flags_for(fsm.require(WorkflowAction.MARK_SENT)),
            "letter_sent_date": today,
            "letter_content": letter.text,
            "letter_payload": payload.model_dump(mode="json"),
        }
        if isinstance(payload, ProposalPayload) and payload.plan is not None:
            progress_fields["resolution_plan"] = payload.plan.model_dump(mode="json")
            progress_fields["proposed_amount"] = payload.monthly_amount or payload.plan.proposed_monthly_amount

        tracker = _WriteTracker(debt_id, letter.text)
        previous_status = debt.status
        try:
            async with self.repo.unit_of_work():
                async with tracker.write(WriteStep.PROPOSAL):
                    proposal = await self._send_proposal(debt_id, today, self._proposal_fields(payload, letter))
                async with tracker.write(WriteStep.DEBT_STATUS):
                    updates = self._send_updates(send_rule)
                    await self.repo.update_debt(debt, **updates)
                async with tracker.write(WriteStep.PROGRESS):
                    if progress is None:
                        progress = await self.repo.create_progress(debt_id, **progress_fields)
                    else:
                        await self.repo.update_progress(progress, **progress_fields)
        except UpstreamWriteError as exc:
            await self._report_failure(debt_id, WorkflowAction.MARK_SENT, exc)
            raise

        new_state = await fsm.transition(WorkflowAction.MARK_SENT)
        change = DebtStatusChange(
            previous_status=projector.known_status(previous_status),
            new_status=send_rule.debt_status,
            updates=updates,
            resolved_reason=send_rule.resolved_reason,
        )
        await self._letter_built(debt, letter)
        await self._proposal_sent(debt, proposal, change)
        return WorkflowResult(
            debt_id=debt_id,
            new_state=new_state,
            letter=letter,
            debt_status_change=change,
            proposal=ProposalView.model_validate(proposal),
        )

    async def record_response(self, debt_id: uuid.UUID, outcome: CreditorResponse) -> WorkflowResult:
        """Record the creditor's response and project it onto the debt.

        Raises:
            PreconditionNotMetError: No letter is awaiting a response.
        """
        debt = await self._get_debt(debt_id)
        progress = await self.repo.get_progress(debt_id)
        fsm = self._fsm(debt_id, progress)
        fsm.require(WorkflowAction.RECORD_RESPONSE)
        assert progress is not None  # AWAITING_RESPONSE implies a progress row

        proposal = await self.repo.latest_proposal(debt_id)
        template_type = TemplateType(proposal.template_type) if proposal else TemplateType.PROPOSAL
        payload_data: dict[str, Any] = (proposal.payload if proposal else None) or {}
        try:
            context = projector.context_for(
                template_type,
                plan_kind=self._mainline_kind(progress, proposal),
                principal_paid=payload_data.get("original_payment_status") == "paid",
            )
        except ValueError as exc:
            raise PreconditionNotMetError(
                str(exc), state=fsm.current_state, action=WorkflowAction.RECORD_RESPONSE
            ) from exc
        rule = projector.project(context, outcome)

        today = self.clock()
        updates = projector.debt_updates(
            rule,
            today=today,
            current_amount=debt.amount,
            plan_monthly_amount=(proposal.proposed_monthly_amount if proposal else None) or progress.proposed_amount,
            recognized_amount=proposal.recognized_amount if proposal else None,
            collection_costs=self._collection_costs(debt, payload_data),
            requested_monthly_amount=proposal.requested_new_amount if proposal else None,
        )
        logger.info(
            "Response %s for debt %s: context=%s → status=%s reason=%s",
            outcome.value,
            debt_id,
            context.value,
            rule.debt_status.value if rule.debt_status else "unchanged",
            rule.resolved_reason.value if rule.resolved_reason else None,
        )

        tracker = _WriteTracker(debt_id, progress.letter_content)
        previous_status = debt.status
        try:
            async with self.repo.unit_of_work():
                async with tracker.write(WriteStep.PROPOSAL):
                    if proposal is not None and proposal.status == ProposalStatus.SENT.value:
                        proposal_update: dict[str, Any] = {"status": rule.proposal_status.value}
                        if rule.proposal_status != ProposalStatus.REMINDER_SENT:
                            proposal_update["response_date"] = today
                        await self.repo.update_proposal(proposal, **proposal_update)
                async with tracker.write(WriteStep.DEBT_STATUS):
                    if updates:
                        await self.repo.update_debt(debt, **updates)
                async with tracker.write(WriteStep.PROGRESS):
                    await self.repo.update_progress(
                        progress, step_3_completed=True, creditor_response=outcome.value
                    )
        except UpstreamWriteError as exc:
            await self._report_failure(debt_id, WorkflowAction.RECORD_RESPONSE, exc)
            raise

        new_state = await fsm.transition(WorkflowAction.RECORD_RESPONSE)
        change = projector.describe_change(previous_status, rule, updates)
        if proposal is not None:
            await emit(SystemEvent(
                event_type=EventType.PROPOSAL_RESOLVED,
                debt_id=debt_id,
                user_id=debt.user_id,
                data={"proposal_id": str(proposal.id), "status": rule.proposal_status.value},
                source_module="workflow.engine",
            ))
        if rule.debt_status is not None:
            await self._status_changed(debt, change)
        return WorkflowResult(
            debt_id=debt_id,
            new_state=new_state,
            debt_status_change=change,
            proposal=ProposalView.model_validate(proposal) if proposal else None,
        )

    async def reopen(self, debt_id: uuid.UUID) -> WorkflowResult:
        """Start a new negotiation round. Earlier proposals stay untouched."""
        debt = await self._get_debt(debt_id)
        progress = await self.repo.get_progress(debt_id)
        fsm = self._fsm(debt_id, progress)
        fsm.require(WorkflowAction.REOPEN)
        assert progress is not None

        tracker = _WriteTracker(debt_id)
        try:
            async with self.repo.unit_of_work(), tracker.write(WriteStep.PROGRESS):
                await self.repo.update_progress(progress, **_STEP_FLAGS_CLEARED)
        except UpstreamWriteError as exc:
            await self._report_failure(debt_id, WorkflowAction.REOPEN, exc)
            raise

        new_state = await fsm.transition(WorkflowAction.REOPEN)
        await emit(SystemEvent(
            event_type=EventType.WORKFLOW_REOPENED,
            debt_id=debt_id,
            user_id=debt.user_id,
            source_module="workflow.engine",
        ))
        return WorkflowResult(debt_id=debt_id, new_state=new_state)

    async def advance_workflow(self, debt_id: uuid.UUID, request: WorkflowRequest) -> WorkflowResult:
        """Single entry point for a presentation layer."""
        action = request.action
        if action == WorkflowAction.COMPLETE_STEP1:
            return await self.complete_step1(debt_id, request.debtor, request.creditor, request.payload)
        if action == WorkflowAction.COMPLETE_STEP2:
            return await self.complete_step2(debt_id)
        if action == WorkflowAction.MARK_SENT:
            if not request.payload:
                raise InvalidInputError("mark_sent requires a strategy payload", fields=["payload"])
            return await self.mark_sent(debt_id, request.payload, request.debtor, request.creditor)
        if action == WorkflowAction.RECORD_RESPONSE:
            if request.outcome is None:
                raise InvalidInputError("record_response requires an outcome", fields=["outcome"])
            return await self.record_response(debt_id, request.outcome)
        return await self.reopen(debt_id)

    # ── Internal helpers ─────────────────────────────────────────────

    async def _get_debt(self, debt_id: uuid.UUID) -> Debt:
        debt = await self.repo.get_debt(debt_id)
        if debt is None:
            raise DebtNotFoundError(debt_id)
        return debt

    def _fsm(self, debt_id: uuid.UUID, progress: ArrangementProgress | None) -> ArrangementFSM:
        if progress is None:
            return ArrangementFSM(debt_id)
        return ArrangementFSM(
            debt_id,
            state_from_flags(
                bool(progress.step_1_completed),
                bool(progress.step_2_completed),
                bool(progress.step_3_completed),
            ),
        )

    async def _compute(self, debt: Debt) -> tuple[AffordabilityBreakdown, ResolutionPlan | None]:
        incomes = await self.repo.list_incomes(debt.user_id)
        costs = await self.repo.list_fixed_costs(debt.user_id)
        debts = await self.repo.list_debts(debt.user_id)
        snapshot = build_snapshot(debt, incomes, costs, debts, self.clock())
        breakdown = compute_breakdown(snapshot)

        plan: ResolutionPlan | None = None
        if debt.amount is not None and debt.amount > 0:
            plan = compute_resolution_plan(breakdown, debt.amount)

        await emit(SystemEvent(
            event_type=EventType.BREAKDOWN_COMPUTED,
            debt_id=debt.id,
            user_id=debt.user_id,
            data={
                "available": str(breakdown.available_for_new_arrangement),
                "plan": plan.kind.value if plan else None,
                "degraded_fields": list(breakdown.degraded_fields),
            },
            source_module="workflow.engine",
        ))
        return breakdown, plan

    @staticmethod
    def _payload(data: dict[str, Any]) -> StrategyPayload:
        return parse_payload(data)

    @staticmethod
    def _creditor(debt: Debt, details: dict[str, Any] | None) -> CreditorInfo:
        """Creditor details from the form, with the debt record's own values taking precedence."""
        merged = dict(details or {})
        known = {
            "name": debt.creditor_name,
            "case_number": debt.case_number,
            "amount": debt.amount,
            "original_amount": debt.original_amount,
            "monthly_payment": debt.monthly_payment,
        }
        merged.update({key: value for key, value in known.items() if value is not None})
        try:
            return CreditorInfo.model_validate(merged)
        except ValueError as exc:
            raise InvalidInputError(f"Invalid creditor details: {exc}", fields=["creditor"]) from exc

    @staticmethod
    def _proposal_fields(payload: StrategyPayload, letter: Letter) -> dict[str, Any]:
        """Columns of a PaymentPlanProposal for a strategy payload."""
        fields: dict[str, Any] = {
            "template_type": payload.template_type,
            "letter_content": letter.text,
            "payload": payload.model_dump(mode="json"),
        }
        if isinstance(payload, ProposalPayload):
            fields["proposed_monthly_amount"] = payload.monthly_amount or (
                payload.plan.proposed_monthly_amount if payload.plan else None
            )
        elif isinstance(payload, DisputePayload):
            fields["dispute_reason"] = payload.reason.value
            fields["dispute_details"] = payload.other_reason
        elif isinstance(payload, PartialRecognitionPayload):
            fields["recognized_amount"] = payload.recognized_amount
            fields["disputed_amount"] = payload.disputed_amount
            fields["dispute_reason"] = payload.dispute_reason
            fields["dispute_details"] = payload.dispute_details
        elif isinstance(payload, LoweringAmountPayload):
            fields["requested_new_amount"] = payload.requested_new_amount
        elif isinstance(payload, PaymentHolidayPayload):
            fields["requested_duration_months"] = payload.requested_duration_months
        elif isinstance(payload, IncassokostenPayload):
            fields["dispute_reason"] = payload.reason.value if payload.reason else None
        return fields

    async def _send_proposal(
        self, debt_id: uuid.UUID, today: date, fields: dict[str, Any]
    ) -> PaymentPlanProposal:
        """Create the sent proposal, reusing one left behind by a failed attempt."""
        latest = await self.repo.latest_proposal(debt_id, [TemplateType(fields["template_type"])])
        if (
            latest is not None
            and latest.status == ProposalStatus.SENT.value
            and latest.sent_date == today
            and latest.letter_content == fields["letter_content"]
        ):
            logger.info("Reusing sent proposal %s for debt %s", latest.id, debt_id)
            return latest
        proposal = await self.repo.create_proposal(
            debt_id, sent_date=today, status=ProposalStatus.SENT.value, **fields
        )
        await emit(SystemEvent(
            event_type=EventType.PROPOSAL_CREATED,
            debt_id=debt_id,
            data={"proposal_id": str(proposal.id), "template_type": fields["template_type"]},
            source_module="workflow.engine",
        ))
        return proposal

    @staticmethod
    def _send_updates(rule: projector.SendRule) -> dict[str, Any]:
        updates: dict[str, Any] = {"status": rule.debt_status.value}
        if rule.resolved_reason is not None:
            updates["resolved_reason"] = rule.resolved_reason.value
        return updates

    @staticmethod
    def _mainline_kind(
        progress: ArrangementProgress, proposal: PaymentPlanProposal | None
    ) -> ResolutionKind | None:
        """Plan kind of the mainline letter: as sent, else as frozen at step 1.

        The juridisch_loket letter offers installments whatever the computed plan says.
        """
        sent = (proposal.payload if proposal else None) or {}
        frozen = progress.letter_payload or {}
        for payload in (sent, frozen):
            if payload.get("style") == "juridisch_loket":
                return ResolutionKind.INSTALLMENT
        for plan in (sent.get("plan"), frozen.get("plan"), progress.resolution_plan):
            if plan and plan.get("kind"):
                return ResolutionKind(plan["kind"])
        if proposal is not None and proposal.proposed_monthly_amount:
            return ResolutionKind.INSTALLMENT
        return None

    @staticmethod
    def _collection_costs(debt: Debt, payload: dict[str, Any]) -> Decimal | None:
        claimed = payload.get("incasso_amount")
        if claimed is not None:
            return Decimal(str(claimed))
        return debt.collection_costs

    async def _letter_built(self, debt: Debt, letter: Letter) -> None:
        await emit(SystemEvent(
            event_type=EventType.LETTER_BUILT,
            debt_id=debt.id,
            user_id=debt.user_id,
            data={"template_type": letter.template_type.value, "placeholders": list(letter.placeholders)},
            source_module="workflow.engine",
        ))

    async def _proposal_sent(self, debt: Debt, proposal: PaymentPlanProposal, change: DebtStatusChange) -> None:
        logger.info("Letter %s sent for debt %s", proposal.template_type, debt.id)
        await self._status_changed(debt, change)

    async def _status_changed(self, debt: Debt, change: DebtStatusChange) -> None:
        await emit(SystemEvent(
            event_type=EventType.DEBT_STATUS_CHANGED,
            debt_id=debt.id,
            user_id=debt.user_id,
            data={
                "from": change.previous_status.value if change.previous_status else None,
                "to": change.new_status.value if change.new_status else None,
                "resolved_reason": change.resolved_reason.value if change.resolved_reason else None,
            },
            source_module="workflow.engine",
        ))

    async def _report_failure(self, debt_id: uuid.UUID, action: WorkflowAction | str, exc: UpstreamWriteError) -> None:
        await emit(SystemEvent(
            event_type=EventType.WRITE_FAILED,
            debt_id=debt_id,
            data={
                "action": action.value if isinstance(action, WorkflowAction) else action,
                "failed_step": exc.failed_step.value,
                "completed_steps": [s.value for s in exc.completed_steps],
            },
            source_module="workflow.engine",
        ))
