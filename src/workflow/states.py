"""Arrangement workflow states and transition map.

The persisted progress row only holds three step flags; the state is always
derived from them (first incomplete step wins), so a flag combination such as
"step 3 done while step 1 is not" can never surface as a state of its own.
"""

from __future__ import annotations

from src.models.enums import WorkflowAction, WorkflowState

# Transition map: {current_state: {action: next_state}}
TRANSITIONS: dict[WorkflowState, dict[WorkflowAction, WorkflowState]] = {
    WorkflowState.BUDGET_REVIEW: {
        WorkflowAction.COMPLETE_STEP1: WorkflowState.LETTER_DISPATCH,
        # Alternate strategies skip the budget gate and are sent straight away
        WorkflowAction.MARK_SENT: WorkflowState.AWAITING_RESPONSE,
    },
    WorkflowState.LETTER_DISPATCH: {
        WorkflowAction.COMPLETE_STEP2: WorkflowState.AWAITING_RESPONSE,
        WorkflowAction.MARK_SENT: WorkflowState.AWAITING_RESPONSE,
    },
    WorkflowState.AWAITING_RESPONSE: {
        WorkflowAction.RECORD_RESPONSE: WorkflowState.RESOLVED,
    },
    WorkflowState.RESOLVED: {
        WorkflowAction.REOPEN: WorkflowState.BUDGET_REVIEW,
    },
}


def state_from_flags(step1: bool, step2: bool, step3: bool) -> WorkflowState:
    """Derive the workflow state from the persisted step flags."""
    if not step1:
        return WorkflowState.BUDGET_REVIEW
    if not step2:
        return WorkflowState.LETTER_DISPATCH
    if not step3:
        return WorkflowState.AWAITING_RESPONSE
    return WorkflowState.RESOLVED


def flags_for(state: WorkflowState) -> dict[str, bool]:
    """Step flags that represent `state` when persisted."""
    order = [
        WorkflowState.BUDGET_REVIEW,
        WorkflowState.LETTER_DISPATCH,
        WorkflowState.AWAITING_RESPONSE,
        WorkflowState.RESOLVED,
    ]
    reached = order.index(state)
    return {
        "step_1_completed": reached >= 1,
        "step_2_completed": reached >= 2,
        "step_3_completed": reached >= 3,
    }
