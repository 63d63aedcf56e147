"""What the wipe service needs from an object store.

GCSStorageService (Firebase Storage), LocalStorageService and S3StorageService
implement it. Failures other than "not found" raise StorageException subclasses.
"""

from typing import Protocol


class StorageProtocol(Protocol):
    async def delete(self, storage_ref: str) -> bool:
        """Remove one object; False when it was already gone."""
        ...

    async def delete_prefix(self, prefix: str) -> int:
        """Remove everything under prefix and return how many objects went."""
        ...

    def path_from_url(self, url: str) -> str | None:
        """Map a stored media URL to an object path in this bucket, or None if foreign."""
        ...
