from __future__ import annotations

from typing import Protocol

from firestore_sync.domain.value_objects.field_value import FieldValue


class DocumentStore(Protocol):
    async def patch_document(self, path: str, fields: dict[str, FieldValue]) -> None:
        """Create or partially update the document at ``path``."""
        ...

    async def delete_document(self, path: str) -> bool:
        """Delete the document at ``path``. Returns False if it was already absent."""
        ...
