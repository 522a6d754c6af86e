from __future__ import annotations

from typing import Protocol

from firestore_sync.application.repositories.outbox import OutboxRepository


class UnitOfWork(Protocol):
    outbox: OutboxRepository

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
