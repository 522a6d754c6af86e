from __future__ import annotations

from datetime import datetime
from typing import Protocol

from firestore_sync.domain.entities.outbox_event import OutboxEvent


class OutboxRepository(Protocol):
    async def fetch_due(
        self,
        limit: int,
        max_retries: int,
        *,
        claim: bool = False,
    ) -> list[OutboxEvent]: ...

    async def mark_processed(self, event_id: str, processed_at: datetime) -> None: ...

    async def mark_failed(self, event_id: str, error_message: str) -> None: ...

    async def purge_processed(self, before: datetime) -> int: ...
