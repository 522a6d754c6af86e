from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class BatchSummaryResponse(BaseModel):
    message: str
    total: int
    success: int
    failure: int


class CleanupResponse(BaseModel):
    message: str
    deleted: int
    cutoff: datetime


class ErrorResponse(BaseModel):
    error: str
