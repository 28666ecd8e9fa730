"""Exceptions raised by the affordability calculator and the arrangement workflow.

Every failure is per-operation: nothing here is fatal to the process. Degraded
input is not an exception; see AffordabilityBreakdown.degraded_fields.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.models.enums import WorkflowAction, WorkflowState, WriteStep


class ArrangementError(Exception):
    """Base class for all workflow errors."""


class InvalidInputError(ArrangementError):
    """A required field is missing or not numeric. Nothing was written."""

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class PreconditionNotMetError(ArrangementError):
    """The requested action is not allowed from the current workflow state. Nothing was written."""

    def __init__(self, message: str, state: WorkflowState | None = None, action: WorkflowAction | None = None) -> None:
        super().__init__(message)
        self.state = state
        self.action = action


class DebtNotFoundError(ArrangementError):
    def __init__(self, debt_id: uuid.UUID) -> None:
        super().__init__(f"Debt {debt_id} not found")
        self.debt_id = debt_id


class UpstreamWriteError(ArrangementError):
    """The persistence layer failed part-way through a step.

    Attributes:
        failed_step: The write that raised.
        completed_steps: Writes that succeeded before it, in order.
        letter_text: The letter text of this step, kept for manual copy.
    """

    def __init__(
        self,
        failed_step: WriteStep,
        completed_steps: list[WriteStep],
        letter_text: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        done = ", ".join(s.value for s in completed_steps) or "none"
        super().__init__(f"Write '{failed_step.value}' failed (completed: {done})")
        self.failed_step = failed_step
        self.completed_steps = list(completed_steps)
        self.letter_text = letter_text
        self.cause = cause
