"""Firestore REST v1 client over httpx.

Only what the account wipe needs: document reads, shallow collection
listings, filtered queries (including collection-group queries) and
documents:batchWrite. Service account tokens come from google-auth; the
blocking refresh runs in a worker thread.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import httpx

from tripzi.infrastructure.exceptions import FirestoreError
from tripzi.infrastructure.firebase._rest_encoding import (
    _encode_value,
    decode_document,
    encode_write,
)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_API_ROOT = "https://firestore.googleapis.com/v1"
_LIST_PAGE_SIZE = 300

# Query operators in client-library spelling -> StructuredQuery FieldFilter.Operator.
_OPERATORS = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "in": "IN",
    "array-contains": "ARRAY_CONTAINS",
    "array-contains-any": "ARRAY_CONTAINS_ANY",
}


def _get_credentials(key_dict: dict, scopes: list[str] | None = None):
    """Service account credentials, scoped to Firestore unless told otherwise."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=scopes or [_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    """Blocking: refresh credentials if expired and return the bearer token."""
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


class DocumentSnapshot:
    """A document's decoded fields plus the reference it was read from."""

    def __init__(self, id_: str, data: dict, reference: DocumentReference | None = None):
        self.id = id_
        self._data = data
        self.reference = reference

    def to_dict(self) -> dict:
        return self._data

    def get(self, field: str, default: Any = None) -> Any:
        return self._data.get(field, default)


class DocumentReference:
    def __init__(self, client: FirestoreRESTClient, name: str):
        self._client = client
        self._name = name

    @property
    def id(self) -> str:
        return self._name.rsplit("/", 1)[-1]

    @property
    def path(self) -> str:
        """Database-relative path, e.g. ``chats/abc/messages/m1``."""
        return self._client.relative_path(self._name)

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self._client, f"{self._name}/{collection_id}")

    async def get(self) -> DocumentSnapshot | None:
        """Read the document; None when it does not exist."""
        body = await self._client._call("GET", self._name, missing_ok=True)
        if not body:
            return None
        return DocumentSnapshot(self.id, decode_document(body.get("fields")), self)


class Query:
    """runQuery over one collection (or every collection with that id).

    Filters are ANDed together and evaluated by Firestore.
    """

    def __init__(
        self,
        client: FirestoreRESTClient,
        parent: str,
        collection_id: str,
        *,
        all_descendants: bool = False,
    ):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._all_descendants = all_descendants
        self._filters: list[dict[str, Any]] = []

    def where(self, field: str, op: str, value: Any) -> Query:
        if op not in _OPERATORS:
            raise ValueError(f"Unsupported query operator {op!r}")
        self._filters.append(
            {
                "fieldFilter": {
                    "field": {"fieldPath": field},
                    "op": _OPERATORS[op],
                    "value": _encode_value(value),
                }
            }
        )
        return self

    def to_structured_query(self) -> dict[str, Any]:
        selector: dict[str, Any] = {"collectionId": self._collection_id}
        if self._all_descendants:
            selector["allDescendants"] = True
        query: dict[str, Any] = {"from": [selector]}
        if len(self._filters) == 1:
            query["where"] = self._filters[0]
        elif self._filters:
            query["where"] = {"compositeFilter": {"op": "AND", "filters": list(self._filters)}}
        return query

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        # runQuery answers with a JSON array; entries without "document" only carry readTime.
        results = await self._client._call(
            "POST",
            f"{self._parent}:runQuery",
            json={"structuredQuery": self.to_structured_query()},
        )
        for entry in results:
            if "document" in entry:
                yield self._client.snapshot(entry["document"])

    async def get(self) -> list[DocumentSnapshot]:
        return [snapshot async for snapshot in self.stream()]


class CollectionReference:
    def __init__(self, client: FirestoreRESTClient, name: str):
        self._client = client
        self._name = name.rstrip("/")

    @property
    def id(self) -> str:
        return self._name.rsplit("/", 1)[-1]

    @property
    def path(self) -> str:
        return self._client.relative_path(self._name)

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self._name}/{document_id}")

    def where(self, field: str, op: str, value: Any) -> Query:
        """Start a query on this collection. Chain more .where() calls, then .get() or .stream()."""
        parent = self._name.rsplit("/", 1)[0]
        return Query(self._client, parent, self.id).where(field, op, value)

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """Every document directly in the collection, page by page."""
        params: dict[str, Any] = {"pageSize": _LIST_PAGE_SIZE}
        while True:
            page = await self._client._call("GET", self._name, params=params)
            for document in page.get("documents", []):
                yield self._client.snapshot(document)
            if not page.get("nextPageToken"):
                return
            params["pageToken"] = page["nextPageToken"]

    async def get(self) -> list[DocumentSnapshot]:
        return [snapshot async for snapshot in self.stream()]


class FirestoreRESTClient:
    """Entry point, shaped like firestore.AsyncClient for the calls we make."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._root = f"projects/{project_id}/databases/(default)/documents"
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=30.0)
        # Discovery fires many queries at once; they should share one refresh.
        self._token_lock = asyncio.Lock()

    @property
    def project_id(self) -> str:
        return self._project_id

    async def aclose(self) -> None:
        """Close the connection pool, unless the caller supplied the client."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str:
        async with self._token_lock:
            return await asyncio.to_thread(_get_access_token, self._credentials)

    async def _call(
        self,
        method: str,
        resource: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        missing_ok: bool = False,
    ) -> Any:
        """Send one API request; HTTP errors raise HTTPStatusError.

        With missing_ok a 404 gives None instead. Only single-document reads
        pass it: a 404 on a query, listing or batchWrite means a wrong project
        or database and must not pass for an empty result.
        """
        response = await self._http.request(
            method,
            f"{_API_ROOT}/{resource}",
            json=json,
            params=params,
            headers={"Authorization": f"Bearer {await self.get_token()}"},
        )
        if missing_ok and response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json() if response.content else {}

    def relative_path(self, name: str) -> str:
        """Strip ``projects/.../documents/`` from a resource name."""
        head = f"{self._root}/"
        return name[len(head):] if name.startswith(head) else name

    def snapshot(self, document: dict) -> DocumentSnapshot:
        """Wrap a REST Document resource."""
        reference = DocumentReference(self, document.get("name", ""))
        return DocumentSnapshot(reference.id, decode_document(document.get("fields")), reference)

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._root}/{collection_id}")

    def document(self, path: str) -> DocumentReference:
        """Reference from a relative path such as ``users/abc``."""
        return DocumentReference(self, f"{self._root}/{path.strip('/')}")

    def collection_group(self, collection_id: str) -> Query:
        """Query every collection with this id, at any depth."""
        return Query(self, self._root, collection_id, all_descendants=True)

    async def batch_write(self, writes: list[dict[str, Any]]) -> list[tuple[int, str]]:
        """Apply up to 500 writes with documents:batchWrite.

        Not atomic: each write succeeds or fails alone. Returns one
        (gRPC code, message) pair per write, code 0 meaning applied. A
        response without a status for every write raises FirestoreError.
        """
        if not writes:
            return []
        body = await self._call(
            "POST",
            f"{self._root}:batchWrite",
            json={"writes": [encode_write(w, self._root) for w in writes]},
        )
        statuses = body.get("status") or []
        if len(statuses) != len(writes):
            raise FirestoreError(
                f"batchWrite returned {len(statuses)} status(es) for {len(writes)} write(s)",
                "BATCH_WRITE_RESPONSE_ERROR",
                {"writes": len(writes), "statuses": len(statuses)},
            )
        return [(int(s.get("code", 0)), s.get("message", "")) for s in statuses]
