"""Firebase Storage / Google Cloud Storage backend over the GCS JSON API.

Same approach as the Firestore REST client: httpx.AsyncClient for I/O and
google-auth service-account tokens refreshed in a worker thread, so no
google-cloud-storage / grpc dependency is needed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx

from tripzi.infrastructure.exceptions import StorageDeleteError
from tripzi.infrastructure.external.storage.urls import storage_path_from_url
from tripzi.infrastructure.firebase._rest_client import (
    _get_access_token,
    _get_credentials,
)

logger = logging.getLogger(__name__)

_STORAGE_SCOPE = "https://www.googleapis.com/auth/devstorage.read_write"
_BASE = "https://storage.googleapis.com/storage/v1"
_DELETE_CONCURRENCY = 16


class GCSStorageService:
    """Object storage in a Firebase Storage (GCS) bucket."""

    def __init__(
        self,
        bucket: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize GCS storage.

        Args:
            bucket: Bucket name, e.g. ``<project>.appspot.com``.
            credentials: google-auth credentials with a storage scope.
            http_client: Optional injected client (tests); otherwise one is created.
        """
        self.bucket = bucket
        self._credentials = credentials
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=30.0)
        self._owns_http = http_client is None
        self._token_lock = asyncio.Lock()

    @classmethod
    def from_service_account(cls, key_dict: dict, bucket: str | None = None) -> GCSStorageService:
        """Build from service account JSON; bucket defaults to the project's Firebase bucket."""
        project_id = key_dict.get("project_id")
        if not bucket and not project_id:
            raise ValueError("GCS_BUCKET not set and service account has no project_id")
        credentials = _get_credentials(key_dict, scopes=[_STORAGE_SCOPE])
        return cls(bucket or f"{project_id}.appspot.com", credentials)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _headers(self) -> dict[str, str]:
        async with self._token_lock:
            token = await asyncio.to_thread(_get_access_token, self._credentials)
        return {"Authorization": f"Bearer {token}"}

    def _object_url(self, storage_ref: str) -> str:
        return f"{_BASE}/b/{self.bucket}/o/{quote(storage_ref, safe='')}"

    async def delete(self, storage_ref: str) -> bool:
        """Delete object. Returns True if deleted, False if it did not exist."""
        try:
            resp = await self._http.delete(
                self._object_url(storage_ref), headers=await self._headers()
            )
        except httpx.HTTPError as e:
            raise StorageDeleteError(storage_ref, str(e)) from e
        if resp.status_code == 404:
            return False
        if resp.status_code not in (200, 204):
            raise StorageDeleteError(storage_ref, f"HTTP {resp.status_code}: {resp.text[:200]}")
        return True

    async def _list_names(self, prefix: str) -> list[str]:
        names: list[str] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {"prefix": prefix, "fields": "items(name),nextPageToken"}
            if page_token:
                params["pageToken"] = page_token
            resp = await self._http.get(
                f"{_BASE}/b/{self.bucket}/o", params=params, headers=await self._headers()
            )
            resp.raise_for_status()
            body = resp.json()
            names.extend(item["name"] for item in body.get("items", []))
            page_token = body.get("nextPageToken")
            if not page_token:
                return names

    async def delete_prefix(self, prefix: str) -> int:
        """List objects under prefix and delete them with bounded concurrency."""
        try:
            names = await self._list_names(prefix)
        except httpx.HTTPError as e:
            raise StorageDeleteError(prefix, str(e)) from e
        if not names:
            return 0

        semaphore = asyncio.Semaphore(_DELETE_CONCURRENCY)

        async def _delete_one(name: str) -> bool:
            async with semaphore:
                return await self.delete(name)

        results = await asyncio.gather(
            *(_delete_one(name) for name in names), return_exceptions=True
        )
        failed = [r for r in results if isinstance(r, BaseException)]
        if failed:
            raise StorageDeleteError(
                prefix, f"{len(failed)} of {len(names)} object(s) failed: {failed[0]}"
            )
        return sum(1 for r in results if r is True)

    def path_from_url(self, url: str) -> str | None:
        path = storage_path_from_url(url, bucket=self.bucket)
        if path is None:
            logger.debug("Media URL not in bucket %s: %s", self.bucket, url)
        return path
