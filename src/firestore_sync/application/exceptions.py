from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class CredentialError(AppError):
    """The identity provider refused or failed the token exchange.

    Fatal for the whole batch: no outbox bookkeeping happens.
    """


class DocumentStoreError(AppError):
    def __init__(self, detail: str = "", *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.body = body


class ProjectionError(AppError):
    """A single event could not be projected; the event is retried."""


class FieldEncodingError(ProjectionError):
    pass
