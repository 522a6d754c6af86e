"""Service-account JWT assertions for the OAuth 2.0 jwt-bearer grant."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

ALGORITHM = "RS256"


@dataclass(frozen=True, slots=True)
class ServiceAccountAssertion:
    issuer: str
    scope: str
    audience: str
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def build(
        cls,
        *,
        issuer: str,
        scope: str,
        audience: str,
        now: datetime,
        lifetime_seconds: int = 3600,
    ) -> ServiceAccountAssertion:
        return cls(
            issuer=issuer,
            scope=scope,
            audience=audience,
            issued_at=now,
            expires_at=now + timedelta(seconds=lifetime_seconds),
        )

    def headers(self) -> dict[str, Any]:
        return {"alg": ALGORITHM, "typ": "JWT"}

    def claims(self) -> dict[str, Any]:
        return {
            "iss": self.issuer,
            "scope": self.scope,
            "aud": self.audience,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
        }

    def sign(self, private_key: RSAPrivateKey) -> str:
        return jwt.encode(
            self.claims(),
            private_key,
            algorithm=ALGORITHM,
            headers=self.headers(),
        )


def load_private_key(pem: str) -> RSAPrivateKey:
    """Load a PKCS#8 PEM key; key files often carry literal ``\\n`` escapes."""
    data = pem.replace("\\n", "\n").encode()
    key = serialization.load_pem_private_key(data, password=None)
    if not isinstance(key, RSAPrivateKey):
        raise ValueError("Service account key is not an RSA private key")
    return key
