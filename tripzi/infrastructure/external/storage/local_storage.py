"""Filesystem stand-in for the Firebase bucket, for development and tests.

Object paths are relative to storage_root. Empty directories left behind by
a delete are removed, so a wiped user's folders disappear along with the files.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse

import aiofiles.os

from tripzi.infrastructure.exceptions import (
    StorageDeleteError,
    StoragePermissionError,
)
from tripzi.infrastructure.external.storage.urls import storage_path_from_url


class LocalStorageService:
    def __init__(self, storage_root: str, base_url: str | None = None) -> None:
        """
        Args:
            storage_root: Directory playing the role of the bucket.
            base_url: URL the directory is served under, if any. Media URLs
                below it map back to object paths.
        """
        self.storage_root = Path(storage_root).resolve()
        self.base_url = base_url.rstrip("/") if base_url else None
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)

    def _resolve(self, storage_ref: str) -> Path:
        """Absolute path for an object; refuses anything escaping storage_root."""
        target = (self.storage_root / storage_ref).resolve()
        if not target.is_relative_to(self.storage_root):
            raise StoragePermissionError(storage_ref, "path_validation")
        return target

    def _remove_empty_dirs(self, start: Path) -> None:
        directory = start
        while directory != self.storage_root and directory.is_dir():
            try:
                directory.rmdir()
            except OSError:
                return
            directory = directory.parent

    async def delete(self, storage_ref: str) -> bool:
        target = self._resolve(storage_ref)
        if not target.is_file():
            return False
        try:
            await aiofiles.os.remove(target)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageDeleteError(storage_ref, str(e)) from e
        self._remove_empty_dirs(target.parent)
        return True

    async def delete_prefix(self, prefix: str) -> int:
        """Delete files whose relative path starts with prefix (a plain string match)."""
        anchor = self._resolve(prefix)
        # "profiles/u1/" is a folder; "profiles/u1" also matches siblings like "profiles/u10".
        search_root = anchor if prefix.endswith("/") else anchor.parent
        if not search_root.is_dir():
            return 0
        matches = sorted(
            path
            for path in search_root.rglob("*")
            if path.is_file() and path.relative_to(self.storage_root).as_posix().startswith(prefix)
        )
        for path in matches:
            try:
                await aiofiles.os.remove(path)
            except OSError as e:
                raise StorageDeleteError(prefix, str(e)) from e
        for directory in sorted({p.parent for p in matches}, key=lambda d: len(d.parts), reverse=True):
            self._remove_empty_dirs(directory)
        if prefix.endswith("/"):
            self._remove_empty_dirs(anchor)
        return len(matches)

    def path_from_url(self, url: str) -> str | None:
        """Object path for file://, base_url and Firebase/GCS download URLs."""
        parsed = urlparse(url)
        if parsed.scheme == "file":
            local = Path(unquote(parsed.path)).resolve()
            if not local.is_relative_to(self.storage_root):
                return None
            return local.relative_to(self.storage_root).as_posix()
        if self.base_url and url.startswith(f"{self.base_url}/"):
            tail = url[len(self.base_url) + 1:].split("?", 1)[0]
            return unquote(tail) or None
        # Bucket names are not checked: the whole directory stands in for the bucket.
        return storage_path_from_url(url)
