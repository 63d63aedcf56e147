"""Storage: Firebase Storage (GCS), local filesystem and S3-compatible backends.

Factory creates backend from tripzi.core.config. Implementations are loaded
lazily inside StorageFactory.create_storage_service() so that:
- GCS and local only require httpx / google-auth / aiofiles (main dependencies).
- S3 backend only loads boto3 when used; install with the ``storage`` extra.
"""

from tripzi.infrastructure.external.storage.factory import StorageFactory
from tripzi.infrastructure.external.storage.protocol import StorageProtocol
from tripzi.infrastructure.external.storage.urls import storage_path_from_url

__all__ = [
    "StorageFactory",
    "StorageProtocol",
    "storage_path_from_url",
]
