from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class BatchSummary:
    total: int = 0
    success: int = 0
    failure: int = 0


@dataclass(frozen=True, slots=True)
class CleanupResult:
    deleted: int
    cutoff: datetime
