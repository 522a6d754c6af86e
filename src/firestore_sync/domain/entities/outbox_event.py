from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class OutboxEvent:
    id: str
    aggregate_type: str
    aggregate_id: str
    event_type: str
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    retry_count: int = 0
    processed_at: datetime | None = None
    error_message: str | None = None

    def is_due(self, max_retries: int) -> bool:
        """Unprocessed and still under the retry ceiling."""
        return self.processed_at is None and self.retry_count < max_retries
