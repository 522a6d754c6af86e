"""Drain one bounded batch of due outbox events into the document store."""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import Protocol

from firestore_sync.application.dto.results import BatchSummary
from firestore_sync.application.exceptions import CredentialError
from firestore_sync.application.ports.auth import AccessTokenProvider
from firestore_sync.application.ports.clock import Clock, SystemClock
from firestore_sync.application.uow import UnitOfWork
from firestore_sync.domain.entities.outbox_event import OutboxEvent

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_MAX_RETRIES = 3


class Projector(Protocol):
    async def project(self, event: OutboxEvent) -> None: ...


class EventDispatcher:
    def __init__(
        self,
        projectors: Mapping[str, Projector],
        credentials: AccessTokenProvider,
        *,
        clock: Clock | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        claim_rows: bool = False,
    ) -> None:
        self._projectors = dict(projectors)
        self._credentials = credentials
        self._clock = clock or SystemClock()
        self._batch_size = batch_size
        self._max_retries = max_retries
        self._claim_rows = claim_rows

    async def run_batch(self, uow: UnitOfWork) -> BatchSummary:
        events = await uow.outbox.fetch_due(
            self._batch_size,
            self._max_retries,
            claim=self._claim_rows,
        )
        if not events:
            logger.info("No due outbox events")
            return BatchSummary()

        logger.info("Processing %d outbox events", len(events))
        start = time.perf_counter()

        # fail the whole batch up front if no token can be obtained
        await self._credentials.get_access_token()

        results = await asyncio.gather(
            *(self.route_and_project(event) for event in events),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, CredentialError):
                logger.error("Credential failure, aborting batch: %s", result.detail)
                raise result

        success = 0
        failure = 0
        for event, result in zip(events, results):
            if isinstance(result, BaseException):
                failure += 1
                logger.error(
                    "Outbox event %s (%s/%s) failed: %s",
                    event.id, event.aggregate_type, event.event_type, result,
                )
                await uow.outbox.mark_failed(event.id, str(result) or type(result).__name__)
            else:
                success += 1
                await uow.outbox.mark_processed(event.id, self._clock.now())

        await uow.commit()
        logger.info(
            "Batch done: total=%d success=%d failure=%d %.1fms",
            len(events), success, failure, (time.perf_counter() - start) * 1000,
        )
        return BatchSummary(total=len(events), success=success, failure=failure)

    async def route_and_project(self, event: OutboxEvent) -> None:
        projector = self._projectors.get(event.aggregate_type)
        if projector is None:
            logger.warning(
                "Unknown aggregate type %r on outbox event %s, skipping",
                event.aggregate_type, event.id,
            )
            return

        logger.debug(
            "Projecting event %s: %s %s %s",
            event.id, event.aggregate_type, event.event_type, event.aggregate_id,
        )
        await projector.project(event)
