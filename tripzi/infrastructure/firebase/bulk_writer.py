"""Bulk write session: queue deletes and updates, flush once.

Counterpart of the Admin SDK's ``db.bulkWriter()`` for the REST client.
Writes are keyed by document path so a document receives at most one
operation per session:

- a second delete of a queued path is a no-op;
- an update of a path queued for deletion is dropped;
- a delete replaces a previously queued update;
- two updates of the same path are merged (ArrayRemove operands on the same
  field are combined).

``flush()`` sends the writes in chunks through ``batch_write``. A write that
fails with NOT_FOUND (the document vanished after it was read) counts as
done; any other per-write failure is collected and raised as
``BulkWriteError`` after every chunk has been attempted.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from tripzi.infrastructure.exceptions import BulkWriteError
from tripzi.infrastructure.firebase.field_values import ArrayRemove

logger = logging.getLogger(__name__)

GRPC_OK = 0
GRPC_NOT_FOUND = 5
MAX_BATCH_SIZE = 500


class BatchWriteClient(Protocol):
    async def batch_write(self, writes: list[dict[str, Any]]) -> list[tuple[int, str]]:
        ...


class BulkWriter:
    """Single-use write session local to one operation."""

    def __init__(self, client: BatchWriteClient, *, batch_size: int = MAX_BATCH_SIZE) -> None:
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self._client = client
        self._batch_size = batch_size
        self._writes: dict[str, dict[str, Any]] = {}
        self._flushed = False

    def _check_open(self) -> None:
        if self._flushed:
            raise RuntimeError("BulkWriter already flushed")

    def delete(self, path: str) -> bool:
        """Queue a delete. Returns False if the path was already queued for deletion."""
        self._check_open()
        queued = self._writes.get(path)
        if queued is not None and queued.get("delete"):
            return False
        if queued is not None:
            logger.debug("Delete of %s supersedes queued update", path)
        self._writes[path] = {"path": path, "delete": True}
        return True

    def update(self, path: str, fields: dict[str, Any]) -> bool:
        """Queue a field update. Returns False if skipped because the path is queued for deletion."""
        self._check_open()
        queued = self._writes.get(path)
        if queued is None:
            self._writes[path] = {"path": path, "update": dict(fields)}
            return True
        if queued.get("delete"):
            logger.debug("Skipping update of %s (queued for deletion)", path)
            return False
        merged = queued["update"]
        for field, value in fields.items():
            current = merged.get(field)
            if isinstance(current, ArrayRemove) and isinstance(value, ArrayRemove):
                merged[field] = current.merged(value)
            else:
                merged[field] = value
        return True

    @property
    def pending(self) -> int:
        return len(self._writes)

    @property
    def deletes(self) -> int:
        return sum(1 for w in self._writes.values() if w.get("delete"))

    @property
    def updates(self) -> int:
        return sum(1 for w in self._writes.values() if "update" in w)

    async def flush(self) -> int:
        """Send all queued writes. Returns number of writes sent.

        Raises:
            BulkWriteError: one or more writes failed with a status other than OK / NOT_FOUND.
            RuntimeError: flush already called.
        """
        self._check_open()
        self._flushed = True
        writes = list(self._writes.values())
        failures: list[tuple[str, int, str]] = []
        for start in range(0, len(writes), self._batch_size):
            chunk = writes[start:start + self._batch_size]
            statuses = await self._client.batch_write(chunk)
            for write, (code, message) in zip(chunk, statuses):
                if code == GRPC_OK:
                    continue
                if code == GRPC_NOT_FOUND:
                    logger.debug("Write to %s found no document; treated as done", write["path"])
                    continue
                failures.append((write["path"], code, message))
        if failures:
            logger.error(
                "Bulk flush: %s of %s write(s) failed (first: %s)",
                len(failures),
                len(writes),
                failures[0][0],
            )
            raise BulkWriteError(failures)
        logger.debug("Bulk flush applied %s write(s)", len(writes))
        return len(writes)
