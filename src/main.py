"""Regelhulp API entry point.

Usage:
    python -m src.main

Serves the arrangement API; the event system and the audit subscriber run
for the lifetime of the app.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.routes import register_error_handlers, router
from src.audit import audit_on_event
from src.config import settings
from src.db.engine import db_lifespan
from src.events import emit, start_event_system, stop_event_system, subscribe, unsubscribe
from src.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """stdlib logging for modules, structlog on top of it for the audit trail.

    Production renders structlog records as JSON lines; elsewhere as console text.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    renderer = (
        structlog.processors.JSONRenderer() if settings.is_production else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Database first, then the event bus with the audit subscriber."""
    logger.info("Starting Regelhulp (env=%s)", settings.environment)

    async with db_lifespan():
        await start_event_system()
        subscribe(audit_on_event)
        await emit(SystemEvent(event_type=EventType.SYSTEM_STARTUP, source_module="main"))
        try:
            yield
        finally:
            await emit(SystemEvent(event_type=EventType.SYSTEM_SHUTDOWN, source_module="main"))
            await stop_event_system()
            unsubscribe(audit_on_event)

    logger.info("Regelhulp stopped")


def create_app() -> FastAPI:
    application = FastAPI(
        title="Regelhulp API",
        description="Affordability calculation and creditor-negotiation workflow for personal debts",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.include_router(router)
    register_error_handlers(application)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok", "environment": settings.environment}

    return application


configure_logging()
app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
