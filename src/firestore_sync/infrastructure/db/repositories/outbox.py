from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from firestore_sync.domain.entities.outbox_event import OutboxEvent
from firestore_sync.infrastructure.db.models.outbox import OutboxModel


def due_events_stmt(limit: int, max_retries: int, *, claim: bool = False) -> Select[tuple[OutboxModel]]:
    """Unprocessed events under the retry ceiling, oldest first."""
    stmt = (
        select(OutboxModel)
        .where(
            OutboxModel.processed_at.is_(None),
            OutboxModel.retry_count < max_retries,
        )
        .order_by(OutboxModel.created_at.asc())
        .limit(limit)
    )
    if claim:
        # rows stay locked until the batch commits its outcomes
        stmt = stmt.with_for_update(skip_locked=True)
    return stmt


class OutboxRepo:
    def __init__(self, session: AsyncSession, *, error_max_length: int = 1000) -> None:
        self._session = session
        self._error_max_length = error_max_length

    async def fetch_due(
        self,
        limit: int,
        max_retries: int,
        *,
        claim: bool = False,
    ) -> list[OutboxEvent]:
        result = await self._session.execute(due_events_stmt(limit, max_retries, claim=claim))
        return [_to_event(row) for row in result.scalars().all()]

    async def mark_processed(self, event_id: str, processed_at: datetime) -> None:
        stmt = (
            update(OutboxModel)
            .where(OutboxModel.id == UUID(event_id))
            .values(processed_at=processed_at)
        )
        await self._session.execute(stmt)

    async def mark_failed(self, event_id: str, error_message: str) -> None:
        # incremented in SQL so the stored counter is never overwritten with a stale value
        stmt = (
            update(OutboxModel)
            .where(OutboxModel.id == UUID(event_id))
            .values(
                retry_count=OutboxModel.retry_count + 1,
                error_message=error_message[: self._error_max_length],
            )
        )
        await self._session.execute(stmt)

    async def purge_processed(self, before: datetime) -> int:
        stmt = delete(OutboxModel).where(
            OutboxModel.processed_at.is_not(None),
            OutboxModel.processed_at < before,
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0


def _to_event(model: OutboxModel) -> OutboxEvent:
    return OutboxEvent(
        id=str(model.id),
        aggregate_type=model.aggregate_type,
        aggregate_id=model.aggregate_id,
        event_type=model.event_type,
        payload=model.payload or {},
        created_at=model.created_at,
        retry_count=model.retry_count,
        processed_at=model.processed_at,
        error_message=model.error_message,
    )
