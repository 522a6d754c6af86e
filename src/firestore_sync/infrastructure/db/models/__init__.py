"""Import all models so Base.metadata sees them."""
from firestore_sync.infrastructure.db.models.outbox import OutboxModel

__all__ = [
    "OutboxModel",
]
