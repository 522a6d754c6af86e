"""Firestore REST client: document PATCH (upsert) and DELETE."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from firestore_sync.application.exceptions import DocumentStoreError
from firestore_sync.application.ports.auth import AccessTokenProvider
from firestore_sync.domain.value_objects.field_value import FieldValue, to_wire_fields

logger = logging.getLogger(__name__)


class FirestoreRestClient:
    """Implements application.ports.document_store.DocumentStore."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        credentials: AccessTokenProvider,
        *,
        project_id: str,
        database: str = "(default)",
        base_url: str = "https://firestore.googleapis.com/v1",
    ) -> None:
        self._http = http
        self._credentials = credentials
        self._documents_root = (
            f"{base_url.rstrip('/')}/projects/{project_id}/databases/{database}/documents"
        )

    def document_url(self, path: str) -> str:
        return f"{self._documents_root}/{path.strip('/')}"

    async def patch_document(self, path: str, fields: dict[str, FieldValue]) -> None:
        body: dict[str, Any] = {"fields": to_wire_fields(fields)}
        response = await self._request("PATCH", path, json=body)
        if response.status_code >= 400:
            raise DocumentStoreError(
                f"PATCH {path} failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        logger.debug("Upserted document %s", path)

    async def delete_document(self, path: str) -> bool:
        response = await self._request("DELETE", path)
        if response.status_code == 404:
            logger.debug("Document %s already absent", path)
            return False
        if response.status_code >= 400:
            raise DocumentStoreError(
                f"DELETE {path} failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        logger.debug("Deleted document %s", path)
        return True

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        # CredentialError propagates untouched: it aborts the whole batch
        token = await self._credentials.get_access_token()
        try:
            return await self._http.request(
                method,
                self.document_url(path),
                json=json,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            logger.error("%s %s request failed: %s", method, path, exc)
            raise DocumentStoreError(f"{method} {path} request failed: {exc}") from exc
