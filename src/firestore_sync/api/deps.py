"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, Request

from firestore_sync.application.ports.clock import Clock, SystemClock
from firestore_sync.infrastructure.db.session import AsyncSessionLocal
from firestore_sync.infrastructure.db.uow import SqlAlchemyUoW
from firestore_sync.services.dispatcher import EventDispatcher


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


def get_dispatcher(request: Request) -> EventDispatcher:
    return request.app.state.dispatcher


DispatcherDep = Annotated[EventDispatcher, Depends(get_dispatcher)]


_clock = SystemClock()


def get_clock() -> Clock:
    return _clock


ClockDep = Annotated[Clock, Depends(get_clock)]
