"""OAuth 2.0 bearer tokens for the document store, cached until near expiry."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

import httpx
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from firestore_sync.application.exceptions import CredentialError
from firestore_sync.application.ports.clock import Clock, SystemClock
from firestore_sync.config import ServiceAccountInfo
from firestore_sync.infrastructure.auth.assertion import (
    ServiceAccountAssertion,
    load_private_key,
)

logger = logging.getLogger(__name__)

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"


@dataclass(slots=True)
class TokenCache:
    value: str | None = None
    expires_at: datetime | None = None

    def get(self, now: datetime) -> str | None:
        if self.value is None or self.expires_at is None:
            return None
        if now >= self.expires_at:
            return None
        return self.value

    def put(self, value: str, expires_at: datetime) -> None:
        self.value = value
        self.expires_at = expires_at

    def clear(self) -> None:
        self.value = None
        self.expires_at = None


class CredentialManager:
    """Implements application.ports.auth.AccessTokenProvider."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        client_email: str,
        private_key: RSAPrivateKey,
        scope: str,
        token_uri: str,
        clock: Clock | None = None,
        cache: TokenCache | None = None,
        assertion_lifetime_seconds: int = 3600,
        expiry_margin_seconds: int = 60,
    ) -> None:
        self._http = http
        self._client_email = client_email
        self._private_key = private_key
        self._scope = scope
        self._token_uri = token_uri
        self._clock = clock or SystemClock()
        self._cache = cache or TokenCache()
        self._assertion_lifetime = assertion_lifetime_seconds
        self._expiry_margin = timedelta(seconds=expiry_margin_seconds)
        self._lock = asyncio.Lock()

    @classmethod
    def from_service_account(
        cls,
        http: httpx.AsyncClient,
        account: ServiceAccountInfo,
        *,
        scope: str,
        **kwargs: object,
    ) -> CredentialManager:
        """Raises ValueError if the key material cannot be loaded."""
        return cls(
            http,
            client_email=account.client_email,
            private_key=load_private_key(account.private_key),
            scope=scope,
            token_uri=account.token_uri,
            **kwargs,  # type: ignore[arg-type]
        )

    @property
    def cache(self) -> TokenCache:
        return self._cache

    async def get_access_token(self) -> str:
        token = self._cache.get(self._clock.now())
        if token is not None:
            return token

        async with self._lock:
            # another task may have refreshed while we waited
            token = self._cache.get(self._clock.now())
            if token is not None:
                return token
            return await self._refresh()

    async def _refresh(self) -> str:
        now = self._clock.now()
        assertion = ServiceAccountAssertion.build(
            issuer=self._client_email,
            scope=self._scope,
            audience=self._token_uri,
            now=now,
            lifetime_seconds=self._assertion_lifetime,
        )
        logger.info("Requesting new access token for %s", self._client_email)

        try:
            response = await self._http.post(
                self._token_uri,
                data={
                    "grant_type": JWT_BEARER_GRANT,
                    "assertion": assertion.sign(self._private_key),
                },
            )
        except httpx.HTTPError as exc:
            logger.error("Token exchange request failed: %s", exc)
            raise CredentialError(f"Token exchange request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error("Token exchange rejected (%d): %s", response.status_code, response.text)
            raise CredentialError(
                f"Token exchange rejected ({response.status_code}): {response.text}"
            )

        try:
            body = response.json()
            access_token = body["access_token"]
            expires_in = int(body.get("expires_in", self._assertion_lifetime))
        except (ValueError, KeyError, TypeError) as exc:
            raise CredentialError(f"Malformed token response: {response.text}") from exc

        expires_at = now + timedelta(seconds=expires_in) - self._expiry_margin
        self._cache.put(access_token, expires_at)
        logger.info("Access token cached until %s", expires_at.isoformat())
        return access_token
