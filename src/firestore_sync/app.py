from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from firestore_sync.api.middleware.correlation_id import CorrelationIdMiddleware
from firestore_sync.api.v1.routers import health, sync
from firestore_sync.application.exceptions import AppError, CredentialError
from firestore_sync.application.ports.clock import Clock, SystemClock
from firestore_sync.config import Settings, settings
from firestore_sync.domain.value_objects.enums import AggregateType
from firestore_sync.infrastructure.auth.credentials import CredentialManager
from firestore_sync.infrastructure.firestore.client import FirestoreRestClient
from firestore_sync.services.booking_projector import BookingProjector
from firestore_sync.services.chat_message_projector import ChatMessageProjector
from firestore_sync.services.dispatcher import EventDispatcher

logger = logging.getLogger(__name__)


def build_dispatcher(
    http: httpx.AsyncClient,
    config: Settings,
    clock: Clock | None = None,
) -> EventDispatcher:
    """Wire credentials, the document store and both projectors together.

    Raises ValueError if the service-account key cannot be loaded.
    """
    clock = clock or SystemClock()
    credentials = CredentialManager.from_service_account(
        http,
        config.FIREBASE_SERVICE_ACCOUNT,
        scope=config.OAUTH_SCOPE,
        clock=clock,
        assertion_lifetime_seconds=config.TOKEN_LIFETIME_SECONDS,
        expiry_margin_seconds=config.TOKEN_EXPIRY_MARGIN_SECONDS,
    )
    store = FirestoreRestClient(
        http,
        credentials,
        project_id=config.firestore_project_id,
        database=config.FIRESTORE_DATABASE,
        base_url=config.FIRESTORE_BASE_URL,
    )
    projectors = {
        AggregateType.BOOKING.value: BookingProjector(
            store,
            collections=config.BOOKING_COLLECTIONS,
            policy=config.DUAL_WRITE_POLICY,
        ),
        AggregateType.CHAT_MESSAGE.value: ChatMessageProjector(
            store,
            rooms_collection=config.CHAT_ROOMS_COLLECTION,
            clock=clock,
        ),
    }
    return EventDispatcher(
        projectors,
        credentials,
        clock=clock,
        batch_size=config.OUTBOX_BATCH_SIZE,
        max_retries=config.OUTBOX_MAX_RETRIES,
        claim_rows=config.OUTBOX_CLAIM_ROWS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.http = httpx.AsyncClient()
    try:
        app.state.dispatcher = build_dispatcher(app.state.http, settings)
    except ValueError:
        logger.exception("Invalid service account key, refusing to start")
        await app.state.http.aclose()
        raise
    logger.info(
        "Sync ready for project %s (batch=%d, max_retries=%d, dual_write=%s)",
        settings.firestore_project_id,
        settings.OUTBOX_BATCH_SIZE,
        settings.OUTBOX_MAX_RETRIES,
        settings.DUAL_WRITE_POLICY.value,
    )

    yield

    await app.state.http.aclose()
    logger.info("HTTP client closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Firestore Sync",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(sync.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CredentialError)
    async def _credential(_req: Request, exc: CredentialError) -> JSONResponse:
        logger.error("Credential failure: %s", exc.detail)
        return JSONResponse(status_code=500, content={"error": exc.detail})

    @app.exception_handler(AppError)
    async def _app_error(_req: Request, exc: AppError) -> JSONResponse:
        logger.error("Request failed: %s", exc.detail)
        return JSONResponse(status_code=500, content={"error": exc.detail})

    @app.exception_handler(Exception)
    async def _unhandled(_req: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error")
        return JSONResponse(status_code=500, content={"error": str(exc) or type(exc).__name__})
