"""
FastAPI inbound adapter.

Accepts messages delivered by the mail gateway as JSON, filters recipients
against the configured mailboxes and hands each message to the dispatcher.
The caller gets 202 immediately; processing outcome is only visible through
the stored audit trail and logs.
"""
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from core.config import Settings, get_settings
from core.db import Database
from core.logger import setup_logger
from core.recipients import accepts_recipient
from core.schema import PERSISTED_MODELS, InboundMessage
from core.templates import TemplateRegistry
from services.dispatcher import MessageDispatcher
from services.notifier import NotificationForwarder
from services.pipeline import MessagePipeline

logger = setup_logger(__name__)

APP_VERSION = "1.0.0"


class InboundRequest(BaseModel):
    """Message as posted by the mail gateway."""
    source_address: str = ""
    sender_email: str = Field(..., min_length=1)
    recipients: List[str] = Field(..., min_length=1)
    subject: str = ""
    body: str = ""


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[TemplateRegistry] = None,
    db: Optional[Database] = None,
    forwarder: Optional[NotificationForwarder] = None,
) -> FastAPI:
    """
    Build the application.

    Collaborators default to the ones described by settings; tests pass
    their own.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_registry = registry or TemplateRegistry.from_file(settings.templates_file)
        app_db = db or Database(settings.database_path)
        app_db.migrate(PERSISTED_MODELS)

        pipeline = MessagePipeline(
            registry=app_registry,
            db=app_db,
            forwarder=forwarder or NotificationForwarder(settings.callback_url, settings.callback_token),
            match_timeout=settings.pattern_timeout_seconds,
        )
        app.state.dispatcher = MessageDispatcher(pipeline, max_concurrent=settings.max_concurrent_messages)
        logger.info(f"{settings.app_name} ready with {len(app_registry)} templates")

        yield

        await app.state.dispatcher.shutdown(
            drain=settings.drain_on_shutdown,
            timeout=settings.shutdown_drain_timeout,
        )

    app = FastAPI(
        title=settings.app_name,
        description="Bank transaction notification to callback relay",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "transact_relay",
            "version": APP_VERSION,
        }

    @app.get("/favicon.ico")
    async def favicon():
        """Return empty response for favicon to avoid 404 errors."""
        return Response(status_code=204)

    @app.post("/inbound", status_code=202)
    async def inbound(
        payload: InboundRequest,
        request: Request,
        x_inbound_secret: Optional[str] = Header(default=None),
    ):
        """Accept one message for asynchronous processing."""
        if settings.inbound_secret and x_inbound_secret != settings.inbound_secret:
            logger.warning(f"Rejected inbound message from {payload.source_address}: bad secret")
            raise HTTPException(status_code=401, detail="Invalid inbound secret")

        accepted = [r for r in payload.recipients if accepts_recipient(r, settings.mailbox_names)]
        if not accepted:
            logger.debug(f"Rejected {payload.source_address}: no recipient matches a mailbox")
            raise HTTPException(status_code=403, detail="No acceptable recipient")

        dispatcher: MessageDispatcher = request.app.state.dispatcher
        if not dispatcher.accepting:
            raise HTTPException(status_code=503, detail="Shutting down")

        dispatcher.submit(InboundMessage(
            source_address=payload.source_address,
            sender_email=payload.sender_email,
            recipients=accepted,
            subject=payload.subject,
            body=payload.body,
        ))
        return {"status": "accepted", "recipients": accepted}

    return app
