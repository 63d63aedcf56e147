"""Media kept in an S3-compatible bucket (AWS, MinIO, Spaces) instead of Firebase Storage."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TypeVar
from urllib.parse import unquote, urlparse

import boto3
from botocore.exceptions import ClientError

from tripzi.infrastructure.exceptions import StorageDeleteError

T = TypeVar("T")

# DeleteObjects accepts at most this many keys per call.
_DELETE_OBJECTS_MAX = 1000
_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _is_missing(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _MISSING_CODES


class S3StorageService:
    """boto3 is synchronous, so every call runs in a worker thread.

    Credentials fall back to boto3's usual chain (env, profile, IAM role)
    when access_key / secret_key are not given.
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        client_kwargs = {"endpoint_url": endpoint_url} if endpoint_url else {}
        self._client = boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            **client_kwargs,
        )

    async def _run(self, target: str, work: Callable[[], T]) -> T:
        """Run blocking boto3 work off the loop; failures become StorageDeleteError."""
        try:
            return await asyncio.to_thread(work)
        except StorageDeleteError:
            raise
        except Exception as e:
            raise StorageDeleteError(target, str(e)) from e

    def _head(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _is_missing(e):
                return False
            raise
        return True

    async def delete(self, storage_ref: str) -> bool:
        # S3 DeleteObject succeeds for absent keys, so check first to report False.
        def work() -> bool:
            if not self._head(storage_ref):
                return False
            self._client.delete_object(Bucket=self.bucket, Key=storage_ref)
            return True

        return await self._run(storage_ref, work)

    async def delete_prefix(self, prefix: str) -> int:
        def work() -> int:
            removed = 0
            pages = self._client.get_paginator("list_objects_v2").paginate(
                Bucket=self.bucket, Prefix=prefix
            )
            for page in pages:
                keys = [{"Key": item["Key"]} for item in page.get("Contents", [])]
                while keys:
                    chunk, keys = keys[:_DELETE_OBJECTS_MAX], keys[_DELETE_OBJECTS_MAX:]
                    result = self._client.delete_objects(
                        Bucket=self.bucket, Delete={"Objects": chunk, "Quiet": True}
                    )
                    failed = result.get("Errors") or []
                    if failed:
                        raise StorageDeleteError(
                            prefix, f"{len(failed)} object(s) not deleted, e.g. {failed[0].get('Key')}"
                        )
                    removed += len(chunk)
            return removed

        return await self._run(prefix, work)

    def path_from_url(self, url: str) -> str | None:
        """Object key for s3://, virtual-hosted, path-style or custom-endpoint URLs in this bucket."""
        parsed = urlparse(url)
        host = (parsed.hostname or "").lower()
        path = unquote(parsed.path.lstrip("/"))

        def key_after_bucket() -> str | None:
            bucket, _, key = path.partition("/")
            return (key or None) if bucket == self.bucket else None

        if parsed.scheme == "s3":
            return (path or None) if parsed.netloc == self.bucket else None
        if self.endpoint_url and url.startswith(f"{self.endpoint_url}/"):
            return key_after_bucket()
        if host.endswith(".amazonaws.com"):
            if host.startswith(f"{self.bucket}.s3."):
                return path or None
            if host.startswith("s3."):
                return key_after_bucket()
        return None
