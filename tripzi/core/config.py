"""Service configuration.

Read from the environment (and .env) by pydantic-settings. Field names map
to upper-case variables: ``gcs_bucket`` <- ``GCS_BUCKET``. Secrets are
SecretStr so they never appear in reprs or logs.
"""

from functools import lru_cache

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

STORAGE_BACKENDS = ("gcs", "local", "s3")


class Settings(BaseSettings):
    """Environment-backed settings for the API and the wipe_user script.

    A Firebase service account is mandatory; the rest has defaults.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "tripzi-account-wipe"
    app_version: str = "1.0.0"
    debug: bool = False

    # Inline JSON wins over the file path when both are set.
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None

    storage_backend: str = "gcs"
    gcs_bucket: str | None = None  # <project_id>.appspot.com when unset
    storage_root: str = "/var/tripzi/storage"
    storage_base_url: str | None = None
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None

    # An unset secret disables the matching trigger (it answers 503).
    account_event_secret: SecretStr | None = None
    admin_api_secret: SecretStr | None = None

    bulk_write_batch_size: int = 500
    request_id_header: str = "X-Request-ID"

    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"  # console | otlp | none
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    @field_validator("storage_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        backend = value.lower()
        if backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Invalid storage_backend {value!r}; choose one of {', '.join(STORAGE_BACKENDS)}"
            )
        return backend

    @field_validator("bulk_write_batch_size")
    @classmethod
    def _batch_within_firestore_limit(cls, value: int) -> int:
        # documents:batchWrite rejects more than 500 writes per request.
        if not 1 <= value <= 500:
            raise ValueError(f"BULK_WRITE_BATCH_SIZE must be between 1 and 500, got {value}")
        return value

    @model_validator(mode="after")
    def _credentials_and_bucket(self) -> "Settings":
        key = self.firebase_service_account_key
        if not (key and key.get_secret_value()) and not self.firebase_service_account_path:
            raise ValueError(
                "Firebase credentials missing: set FIREBASE_SERVICE_ACCOUNT_KEY "
                "or FIREBASE_SERVICE_ACCOUNT_PATH"
            )
        if self.storage_backend == "s3" and not self.s3_bucket:
            raise ValueError("s3_bucket (S3_BUCKET) is required for the s3 storage backend")
        return self


@lru_cache
def get_settings() -> Settings:
    """Settings for this process, loaded on first use.

    Tests that change the environment must call get_settings.cache_clear().
    """
    return Settings()
