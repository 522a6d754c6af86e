from __future__ import annotations

import logging
from datetime import timedelta

from firestore_sync.application.dto.results import CleanupResult
from firestore_sync.application.ports.clock import Clock
from firestore_sync.application.uow import UnitOfWork

logger = logging.getLogger(__name__)


async def purge_processed_events(
    uow: UnitOfWork,
    clock: Clock,
    retention_days: int = 7,
) -> CleanupResult:
    """Delete processed outbox rows older than the retention window.

    Unprocessed rows are kept regardless of age, including those that ran
    out of retries.
    """
    cutoff = clock.now() - timedelta(days=retention_days)
    deleted = await uow.outbox.purge_processed(cutoff)
    await uow.commit()
    logger.info("Purged %d processed outbox events older than %s", deleted, cutoff.isoformat())
    return CleanupResult(deleted=deleted, cutoff=cutoff)
