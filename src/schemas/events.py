"""SystemEvent schema — emitted on every workflow side effect.

Subscribers (the structured audit log, tests) consume these events asynchronously.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """All event types emitted by the engine."""

    # Workflow lifecycle
    WORKFLOW_OPENED = "workflow.opened"
    WORKFLOW_STATE_CHANGED = "workflow.state_changed"
    WORKFLOW_REOPENED = "workflow.reopened"

    # Calculations
    BREAKDOWN_COMPUTED = "calculation.breakdown"

    # Letters & proposals
    LETTER_BUILT = "letter.built"
    PROPOSAL_CREATED = "proposal.created"
    PROPOSAL_RESOLVED = "proposal.resolved"

    # Debt record
    DEBT_STATUS_CHANGED = "debt.status_changed"

    # Failures
    WRITE_FAILED = "write.failed"

    # System
    SYSTEM_STARTUP = "system.startup"
    SYSTEM_SHUTDOWN = "system.shutdown"


class SystemEvent(BaseModel):
    """Core event that flows through the engine.

    Immutable once created. Consumed by:
    - audit log subscriber → structured log record per event
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Context (optional; system events carry no debt)
    debt_id: uuid.UUID | None = None
    user_id: uuid.UUID | None = None

    # Flexible payload
    data: dict[str, Any] = Field(default_factory=dict)

    # Metadata
    source_module: str | None = Field(default=None, description="Module that emitted this event")

    model_config = {"frozen": True}
