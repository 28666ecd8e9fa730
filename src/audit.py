"""Audit log subscriber — writes every SystemEvent as a structured log record.

Registered as a global subscriber (receives ALL events). Together with the
append-only proposal log this is the trail of what the engine did to a debt.

Never raises — failures are logged but never propagate to the event system.
"""

from __future__ import annotations

import logging

import structlog

from src.schemas.events import SystemEvent

logger = logging.getLogger(__name__)
audit_log = structlog.get_logger("regelhulp.audit")


async def audit_on_event(event: SystemEvent) -> None:
    """Log a SystemEvent with its debt and payload as key/value pairs."""
    try:
        audit_log.info(
            event.event_type.value,
            event_id=str(event.id),
            debt_id=str(event.debt_id) if event.debt_id else None,
            user_id=str(event.user_id) if event.user_id else None,
            source=event.source_module,
            timestamp=event.timestamp.isoformat(),
            **event.data,
        )
    except Exception:
        logger.exception(
            "Failed to write audit record: %s (debt=%s)",
            event.event_type.value,
            event.debt_id,
        )
