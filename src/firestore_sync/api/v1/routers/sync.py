from __future__ import annotations

from fastapi import APIRouter

from firestore_sync.api.deps import ClockDep, DispatcherDep, UoWDep
from firestore_sync.api.v1.schemas.sync import (
    BatchSummaryResponse,
    CleanupResponse,
    ErrorResponse,
)
from firestore_sync.config import settings
from firestore_sync.services.outbox_cleanup import purge_processed_events

router = APIRouter(
    prefix="/api/v1",
    tags=["sync"],
    responses={500: {"model": ErrorResponse}},
)


@router.post("/sync", response_model=BatchSummaryResponse)
async def sync_outbox(dispatcher: DispatcherDep, uow: UoWDep) -> BatchSummaryResponse:
    summary = await dispatcher.run_batch(uow)
    message = "No due events" if summary.total == 0 else "Batch processed"
    return BatchSummaryResponse(
        message=message,
        total=summary.total,
        success=summary.success,
        failure=summary.failure,
    )


@router.post("/outbox/cleanup", response_model=CleanupResponse)
async def cleanup_outbox(uow: UoWDep, clock: ClockDep) -> CleanupResponse:
    result = await purge_processed_events(uow, clock, settings.OUTBOX_RETENTION_DAYS)
    return CleanupResponse(
        message="Cleanup complete",
        deleted=result.deleted,
        cutoff=result.cutoff,
    )
