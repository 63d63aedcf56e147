"""Pick the storage backend named by STORAGE_BACKEND.

Backends are imported lazily so that boto3 is only needed when the s3
backend is actually selected.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from tripzi.infrastructure.external.storage.protocol import StorageProtocol

if TYPE_CHECKING:
    from tripzi.core.config import Settings


def _gcs(settings: Settings) -> StorageProtocol:
    from tripzi.infrastructure.external.storage.gcs_storage import GCSStorageService
    from tripzi.infrastructure.firebase.client import load_service_account_info

    # Same service account as Firestore; the bucket falls back to <project>.appspot.com.
    service_account = load_service_account_info()
    if not service_account:
        raise ValueError(
            "GCS backend requires FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_SERVICE_ACCOUNT_PATH"
        )
    return GCSStorageService.from_service_account(service_account, bucket=settings.gcs_bucket)


def _local(settings: Settings) -> StorageProtocol:
    from tripzi.infrastructure.external.storage.local_storage import LocalStorageService

    if not settings.storage_root:
        raise ValueError("Local backend requires STORAGE_ROOT")
    return LocalStorageService(
        storage_root=settings.storage_root, base_url=settings.storage_base_url
    )


def _s3(settings: Settings) -> StorageProtocol:
    if not settings.s3_bucket:
        raise ValueError("S3 backend requires S3_BUCKET")
    try:
        from tripzi.infrastructure.external.storage.s3_storage import S3StorageService
    except ImportError as e:
        raise ValueError(
            "S3 backend needs boto3: pip install 'tripzi-account-wipe[storage]'"
        ) from e
    secret = settings.s3_secret_key
    return S3StorageService(
        bucket=settings.s3_bucket,
        region=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
        access_key=settings.s3_access_key,
        secret_key=secret.get_secret_value() if secret else None,
    )


_BACKENDS: dict[str, Callable[[Settings], StorageProtocol]] = {
    "gcs": _gcs,
    "local": _local,
    "s3": _s3,
}


class StorageFactory:
    """Builds the configured StorageProtocol implementation."""

    @staticmethod
    def create_storage_service(settings: Settings | None = None) -> StorageProtocol:
        """Return the backend for settings.storage_backend (gcs, local or s3).

        Raises ValueError for an unknown backend or missing backend config.
        """
        if settings is None:
            from tripzi.core.config import get_settings

            settings = get_settings()
        name = settings.storage_backend.lower()
        build = _BACKENDS.get(name)
        if build is None:
            raise ValueError(
                f"Unknown storage backend {name!r}; expected one of {', '.join(sorted(_BACKENDS))}"
            )
        return build(settings)
