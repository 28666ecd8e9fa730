"""Finite state machine for a single debt's arrangement workflow.

The FSM validates actions and emits state-change events. It never writes to
the database: the engine persists a step first and only then advances the FSM.
"""

from __future__ import annotations

import logging
import uuid

from src.events import emit
from src.models.enums import WorkflowAction, WorkflowState
from src.schemas.events import EventType, SystemEvent
from src.workflow.errors import PreconditionNotMetError
from src.workflow.states import TRANSITIONS

logger = logging.getLogger(__name__)


class ArrangementFSM:
    """Tracks the workflow state of one debt."""

    def __init__(
        self,
        debt_id: uuid.UUID,
        initial_state: WorkflowState = WorkflowState.BUDGET_REVIEW,
    ) -> None:
        self.debt_id = debt_id
        self.current_state = initial_state

    def can_transition(self, action: WorkflowAction) -> bool:
        return action in TRANSITIONS.get(self.current_state, {})

    def get_valid_actions(self) -> list[WorkflowAction]:
        """Actions allowed from the current state."""
        return list(TRANSITIONS.get(self.current_state, {}).keys())

    def require(self, action: WorkflowAction) -> WorkflowState:
        """Check an action without applying it.

        Returns:
            The state the action would lead to.

        Raises:
            PreconditionNotMetError: If the action is not valid from the current state.
        """
        state_transitions = TRANSITIONS.get(self.current_state, {})
        if action not in state_transitions:
            msg = (
                f"Invalid transition: {self.current_state.value} --{action.value}--> ??? "
                f"(valid: {[a.value for a in state_transitions]})"
            )
            raise PreconditionNotMetError(msg, state=self.current_state, action=action)
        return state_transitions[action]

    async def transition(self, action: WorkflowAction) -> WorkflowState:
        """Apply an action.

        Raises:
            PreconditionNotMetError: If the action is not valid from the current state.
        """
        old_state = self.current_state
        self.current_state = self.require(action)

        logger.info(
            "State transition: %s --%s--> %s (debt=%s)",
            old_state.value,
            action.value,
            self.current_state.value,
            self.debt_id,
        )

        await emit(SystemEvent(
            event_type=EventType.WORKFLOW_STATE_CHANGED,
            debt_id=self.debt_id,
            data={
                "from_state": old_state.value,
                "to_state": self.current_state.value,
                "action": action.value,
            },
            source_module="workflow.fsm",
        ))

        return self.current_state

    @property
    def is_resolved(self) -> bool:
        return self.current_state == WorkflowState.RESOLVED
