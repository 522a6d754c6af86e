from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings

from firestore_sync.domain.value_objects.enums import DualWritePolicy


class ServiceAccountInfo(BaseModel):
    """The subset of a Google service-account key file the sync needs."""

    project_id: str
    client_email: str
    private_key: str
    token_uri: str = "https://oauth2.googleapis.com/token"

    model_config = ConfigDict(extra="ignore")


class Settings(BaseSettings):
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_RECYCLE: int = 300

    # JSON key file contents; parsed and validated at startup
    FIREBASE_SERVICE_ACCOUNT: ServiceAccountInfo

    FIRESTORE_BASE_URL: str = "https://firestore.googleapis.com/v1"
    FIRESTORE_DATABASE: str = "(default)"
    OAUTH_SCOPE: str = "https://www.googleapis.com/auth/datastore"
    TOKEN_LIFETIME_SECONDS: int = 3600
    TOKEN_EXPIRY_MARGIN_SECONDS: int = 60

    OUTBOX_BATCH_SIZE: int = 10
    OUTBOX_MAX_RETRIES: int = 3
    OUTBOX_CLAIM_ROWS: bool = False
    OUTBOX_RETENTION_DAYS: int = 7
    OUTBOX_ERROR_MAX_LENGTH: int = 1000

    DUAL_WRITE_POLICY: DualWritePolicy = DualWritePolicy.LENIENT
    BOOKING_COLLECTIONS: list[str] = ["orders_rt", "bookings"]
    CHAT_ROOMS_COLLECTION: str = "chat_rooms"

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def firestore_project_id(self) -> str:
        return self.FIREBASE_SERVICE_ACCOUNT.project_id

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
