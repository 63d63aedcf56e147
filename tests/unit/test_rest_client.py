"""Unit tests for FirestoreRESTClient against httpx.MockTransport (no network)."""

import json
from types import SimpleNamespace

import httpx
import pytest

from tripzi.infrastructure.exceptions import FirestoreError
from tripzi.infrastructure.firebase._rest_client import FirestoreRESTClient
from tripzi.infrastructure.firebase.field_values import ArrayRemove

PREFIX = "projects/tripzi-test/databases/(default)/documents"
BASE = "https://firestore.googleapis.com/v1"


def _doc(path: str, **fields) -> dict:
    return {
        "name": f"{PREFIX}/{path}",
        "fields": {k: {"stringValue": v} for k, v in fields.items()},
    }


def _client(handler) -> FirestoreRESTClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    credentials = SimpleNamespace(valid=True, token="test-token")
    return FirestoreRESTClient("tripzi-test", credentials, http_client=http)


async def test_where_query_posts_structured_query_and_decodes_results() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"document": _doc("trips/t1", userId="u1")},
                {"readTime": "2024-01-01T00:00:00Z"},
            ],
        )

    db = _client(handler)
    docs = await db.collection("trips").where("participants", "array-contains", "u1").get()

    assert [d.id for d in docs] == ["t1"]
    assert docs[0].get("userId") == "u1"
    assert docs[0].reference.path == "trips/t1"
    request = seen[0]
    assert str(request.url) == f"{BASE}/{PREFIX}:runQuery"
    assert request.headers["Authorization"] == "Bearer test-token"
    body = json.loads(request.content)
    assert body == {
        "structuredQuery": {
            "from": [{"collectionId": "trips"}],
            "where": {
                "fieldFilter": {
                    "field": {"fieldPath": "participants"},
                    "op": "ARRAY_CONTAINS",
                    "value": {"stringValue": "u1"},
                }
            },
        }
    }


async def test_chained_where_on_subcollection_uses_parent_document() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    db = _client(handler)
    await (
        db.collection("chats").document("g1").collection("messages")
        .where("senderId", "==", "u1")
        .where("deleted", "==", False)
        .get()
    )

    assert str(seen[0].url) == f"{BASE}/{PREFIX}/chats/g1:runQuery"
    where = json.loads(seen[0].content)["structuredQuery"]["where"]
    assert where["compositeFilter"]["op"] == "AND"
    assert len(where["compositeFilter"]["filters"]) == 2


async def test_collection_group_query_sets_all_descendants() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"document": _doc("trips/t2/comments/c1", userId="u1")}])

    db = _client(handler)
    docs = await db.collection_group("comments").where("userId", "==", "u1").get()

    assert docs[0].reference.path == "trips/t2/comments/c1"
    source = json.loads(seen[0].content)["structuredQuery"]["from"]
    assert source == [{"collectionId": "comments", "allDescendants": True}]


async def test_collection_listing_follows_page_tokens() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("pageToken") == "next":
            return httpx.Response(200, json={"documents": [_doc("notifications/u1/items/n2")]})
        return httpx.Response(
            200,
            json={"documents": [_doc("notifications/u1/items/n1")], "nextPageToken": "next"},
        )

    db = _client(handler)
    docs = await db.collection("notifications").document("u1").collection("items").get()

    assert [d.id for d in docs] == ["n1", "n2"]


async def test_document_get_returns_none_on_404() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/public_users/u1"):
            return httpx.Response(404, json={"error": {"code": 404}})
        return httpx.Response(200, json=_doc("public_users/u2", displayName="Bob"))

    db = _client(handler)

    assert await db.collection("public_users").document("u1").get() is None
    snapshot = await db.document("public_users/u2").get()
    assert snapshot is not None
    assert snapshot.to_dict() == {"displayName": "Bob"}


async def test_batch_write_encodes_writes_and_returns_statuses() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"writeResults": [{}, {}], "status": [{}, {"code": 5, "message": "missing"}]},
        )

    db = _client(handler)
    statuses = await db.batch_write(
        [
            {"path": "users/u1", "delete": True},
            {"path": "trips/t2", "update": {"participants": ArrayRemove("u1")}},
        ]
    )

    assert statuses == [(0, ""), (5, "missing")]
    assert str(seen[0].url) == f"{BASE}/{PREFIX}:batchWrite"
    writes = json.loads(seen[0].content)["writes"]
    assert writes[0] == {"delete": f"{PREFIX}/users/u1"}
    assert writes[1]["currentDocument"] == {"exists": True}


async def test_batch_write_http_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": {"status": "PERMISSION_DENIED"}})

    db = _client(handler)
    with pytest.raises(httpx.HTTPStatusError):
        await db.batch_write([{"path": "users/u1", "delete": True}])


async def test_batch_write_404_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": {"code": 404, "status": "NOT_FOUND"}})

    db = _client(handler)
    with pytest.raises(httpx.HTTPStatusError):
        await db.batch_write([{"path": "users/u1", "delete": True}])


@pytest.mark.parametrize(
    "body",
    [
        {"writeResults": [{}, {}]},
        {"writeResults": [{}, {}], "status": [{}]},
    ],
)
async def test_batch_write_without_a_status_per_write_raises(body: dict) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    db = _client(handler)
    with pytest.raises(FirestoreError):
        await db.batch_write(
            [{"path": "users/u1", "delete": True}, {"path": "ratings/r1", "delete": True}]
        )


async def test_query_404_raises_instead_of_returning_nothing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": {"code": 404, "status": "NOT_FOUND"}})

    db = _client(handler)
    with pytest.raises(httpx.HTTPStatusError):
        await db.collection("trips").where("userId", "==", "u1").get()
    with pytest.raises(httpx.HTTPStatusError):
        await db.collection("notifications").document("u1").collection("items").get()


async def test_batch_write_with_no_writes_makes_no_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert await _client(handler).batch_write([]) == []


async def test_injected_http_client_is_not_closed() -> None:
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
    db = FirestoreRESTClient("tripzi-test", SimpleNamespace(valid=True, token="t"), http_client=http)
    await db.aclose()
    assert not http.is_closed
    await http.aclose()
