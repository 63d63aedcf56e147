"""In-memory Firestore with the query/write surface of FirestoreRESTClient.

Documents are stored by relative path (``trips/t1``). Queries support ``==``
and ``array-contains`` filters, collection-group scans and sub-collections.
``batch_write`` applies writes the way documents:batchWrite does: deletes
always succeed, updates of a missing document return NOT_FOUND (code 5).
"""

from __future__ import annotations

import copy
from typing import Any

from tripzi.infrastructure.firebase._rest_client import DocumentSnapshot
from tripzi.infrastructure.firebase._rest_encoding import split_field_path
from tripzi.infrastructure.firebase.field_values import (
    DELETE_FIELD,
    ArrayRemove,
)


def _parent(path: str) -> str:
    return path.rsplit("/", 1)[0]


def _get_nested(data: dict, segments: list[str]) -> Any:
    for segment in segments:
        if not isinstance(data, dict) or segment not in data:
            return None
        data = data[segment]
    return data


def _container(data: dict, segments: list[str]) -> dict:
    for segment in segments[:-1]:
        child = data.get(segment)
        if not isinstance(child, dict):
            child = {}
            data[segment] = child
        data = child
    return data


class FakeDocumentReference:
    def __init__(self, db: InMemoryFirestore, path: str) -> None:
        self._db = db
        self.path = path

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def collection(self, collection_id: str) -> FakeCollectionReference:
        return FakeCollectionReference(self._db, f"{self.path}/{collection_id}")

    async def get(self) -> DocumentSnapshot | None:
        self._db.record_read(self.path)
        data = self._db.docs.get(self.path)
        if data is None:
            return None
        return DocumentSnapshot(self.id, copy.deepcopy(data), self)


class FakeQuery:
    def __init__(
        self,
        db: InMemoryFirestore,
        collection_id: str,
        collection_path: str | None = None,
    ) -> None:
        self._db = db
        self._collection_id = collection_id
        self._collection_path = collection_path
        self._filters: list[tuple[str, str, Any]] = []

    def where(self, field: str, op: str, value: Any) -> FakeQuery:
        if op not in ("==", "array-contains"):
            raise NotImplementedError(op)
        self._filters.append((field, op, value))
        return self

    def _in_scope(self, path: str) -> bool:
        if self._collection_path is not None:
            return _parent(path) == self._collection_path
        return _parent(path).rsplit("/", 1)[-1] == self._collection_id

    def _matches(self, data: dict) -> bool:
        for field, op, value in self._filters:
            actual = data.get(field)
            if op == "==" and actual != value:
                return False
            if op == "array-contains" and not (isinstance(actual, list) and value in actual):
                return False
        return True

    async def get(self) -> list[DocumentSnapshot]:
        self._db.record_read(self._collection_path or f"**/{self._collection_id}")
        out = []
        for path in sorted(self._db.docs):
            data = self._db.docs[path]
            if self._in_scope(path) and self._matches(data):
                ref = FakeDocumentReference(self._db, path)
                out.append(DocumentSnapshot(ref.id, copy.deepcopy(data), ref))
        return out


class FakeCollectionReference:
    def __init__(self, db: InMemoryFirestore, path: str) -> None:
        self._db = db
        self.path = path

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def document(self, document_id: str) -> FakeDocumentReference:
        return FakeDocumentReference(self._db, f"{self.path}/{document_id}")

    def where(self, field: str, op: str, value: Any) -> FakeQuery:
        return FakeQuery(self._db, self.id, self.path).where(field, op, value)

    async def get(self) -> list[DocumentSnapshot]:
        return await FakeQuery(self._db, self.id, self.path).get()


class InMemoryFirestore:
    """Dict-backed stand-in for FirestoreRESTClient."""

    def __init__(self) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self.batches: list[list[dict[str, Any]]] = []
        self.reads: list[str] = []
        # path -> (grpc code, message) returned instead of applying the write
        self.write_failures: dict[str, tuple[int, str]] = {}
        # collection ids whose queries raise
        self.failing_collections: set[str] = set()

    def seed(self, path: str, data: dict[str, Any]) -> None:
        self.docs[path] = copy.deepcopy(data)

    def record_read(self, target: str) -> None:
        collection_id = target.rsplit("/", 1)[-1]
        if collection_id in self.failing_collections or target in self.failing_collections:
            raise RuntimeError(f"read of {target} failed")
        self.reads.append(target)

    @property
    def writes(self) -> list[dict[str, Any]]:
        return [w for batch in self.batches for w in batch]

    def collection(self, collection_id: str) -> FakeCollectionReference:
        return FakeCollectionReference(self, collection_id)

    def document(self, path: str) -> FakeDocumentReference:
        return FakeDocumentReference(self, path.strip("/"))

    def collection_group(self, collection_id: str) -> FakeQuery:
        return FakeQuery(self, collection_id)

    async def batch_write(self, writes: list[dict[str, Any]]) -> list[tuple[int, str]]:
        self.batches.append(copy.deepcopy(writes))
        return [self._apply(w) for w in writes]

    def _apply(self, write: dict[str, Any]) -> tuple[int, str]:
        path = write["path"]
        if path in self.write_failures:
            return self.write_failures[path]
        if write.get("delete"):
            self.docs.pop(path, None)
            return 0, ""
        doc = self.docs.get(path)
        if doc is None:
            return 5, f"No document to update: {path}"
        for field, value in write["update"].items():
            segments = split_field_path(field)
            key = segments[-1]
            if value is DELETE_FIELD:
                parent = _get_nested(doc, segments[:-1]) if len(segments) > 1 else doc
                if isinstance(parent, dict):
                    parent.pop(key, None)
                continue
            holder = _container(doc, segments)
            if isinstance(value, ArrayRemove):
                current = _get_nested(doc, segments)
                current = current if isinstance(current, list) else []
                holder[key] = [v for v in current if v not in value.values]
            else:
                holder[key] = copy.deepcopy(value)
        return 0, ""
