"""API tests for the account wipe triggers (event webhook and admin route)."""

import hashlib
import hmac
import json

import pytest
from httpx import AsyncClient

from tests.fakes import TEST_ADMIN_SECRET, TEST_EVENT_SECRET
from tests.fakes.firestore import InMemoryFirestore
from tripzi.api.v1.dependencies import get_account_wipe_service
from tripzi.core.config import get_settings
from tripzi.infrastructure.firebase.services import FirestoreAccountWipeService
from tripzi.main import app

EVENT_URL = "/api/v1/accounts/events/user-deleted"


def _sign(body: bytes, secret: str = TEST_EVENT_SECRET) -> dict[str, str]:
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return {"X-Webhook-Signature-256": f"sha256={digest}", "Content-Type": "application/json"}


@pytest.fixture
def seeded_db(db: InMemoryFirestore) -> InMemoryFirestore:
    db.seed("users/u1", {"name": "Ada"})
    db.seed("notifications/u1", {})
    db.seed("push_tokens/u1", {"token": "t"})
    db.seed("trips/t2", {"userId": "u2", "participants": ["u2", "u1"], "likes": []})
    return db


@pytest.fixture
def use_fake_service(wipe_service: FirestoreAccountWipeService):
    app.dependency_overrides[get_account_wipe_service] = lambda: wipe_service
    yield
    app.dependency_overrides.pop(get_account_wipe_service, None)


async def test_event_when_secret_not_configured_returns_503(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch, use_fake_service
) -> None:
    monkeypatch.delenv("ACCOUNT_EVENT_SECRET", raising=False)
    get_settings.cache_clear()
    body = json.dumps({"uid": "u1"}).encode()

    response = await client.post(EVENT_URL, content=body, headers=_sign(body))

    assert response.status_code == 503
    assert "not configured" in response.json()["message"].lower()
    get_settings.cache_clear()


async def test_event_with_wrong_signature_returns_401(
    client: AsyncClient, trigger_secrets, use_fake_service, seeded_db: InMemoryFirestore
) -> None:
    body = json.dumps({"uid": "u1"}).encode()

    response = await client.post(EVENT_URL, content=body, headers=_sign(body, "other-secret"))

    assert response.status_code == 401
    assert "signature" in response.json()["message"].lower()
    assert "users/u1" in seeded_db.docs


async def test_event_without_signature_returns_401(
    client: AsyncClient, trigger_secrets, use_fake_service
) -> None:
    response = await client.post(EVENT_URL, json={"uid": "u1"})
    assert response.status_code == 401


async def test_signed_event_wipes_user(
    client: AsyncClient, trigger_secrets, use_fake_service, seeded_db: InMemoryFirestore
) -> None:
    body = json.dumps({"uid": "u1"}).encode()

    response = await client.post(EVENT_URL, content=body, headers=_sign(body))

    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == "u1"
    assert data["deletes_issued"] == 3
    assert data["updates_issued"] == 1
    assert data["storage_failures"] == 0
    assert "users/u1" not in seeded_db.docs
    assert seeded_db.docs["trips/t2"]["participants"] == ["u2"]


async def test_signed_event_accepts_data_envelope(
    client: AsyncClient, trigger_secrets, use_fake_service, seeded_db: InMemoryFirestore
) -> None:
    body = json.dumps({"data": {"uid": "u1", "email": "ada@example.com"}}).encode()

    response = await client.post(EVENT_URL, content=body, headers=_sign(body))

    assert response.status_code == 200
    assert response.json()["user_id"] == "u1"
    assert "users/u1" not in seeded_db.docs


@pytest.mark.parametrize(
    "payload",
    [b"{}", b"not json", json.dumps({"uid": "a/b"}).encode()],
)
async def test_signed_event_with_bad_body_returns_400(
    payload: bytes, client: AsyncClient, trigger_secrets, use_fake_service
) -> None:
    response = await client.post(EVENT_URL, content=payload, headers=_sign(payload))
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_failed_wipe_returns_500_so_event_is_retried(
    client: AsyncClient, trigger_secrets, use_fake_service, seeded_db: InMemoryFirestore
) -> None:
    seeded_db.write_failures["users/u1"] = (14, "UNAVAILABLE")
    body = json.dumps({"uid": "u1"}).encode()

    response = await client.post(EVENT_URL, content=body, headers=_sign(body))

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "ACCOUNT_WIPE_FAILED"
    assert data["details"]["user_id"] == "u1"


async def test_admin_wipe_requires_secret(
    client: AsyncClient, trigger_secrets, use_fake_service, seeded_db: InMemoryFirestore
) -> None:
    missing = await client.post("/api/v1/accounts/u1/wipe")
    wrong = await client.post("/api/v1/accounts/u1/wipe", headers={"X-Admin-Secret": "nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert "users/u1" in seeded_db.docs


async def test_admin_wipe_not_configured_returns_503(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch, use_fake_service
) -> None:
    monkeypatch.delenv("ADMIN_API_SECRET", raising=False)
    get_settings.cache_clear()

    response = await client.post(
        "/api/v1/accounts/u1/wipe", headers={"X-Admin-Secret": TEST_ADMIN_SECRET}
    )

    assert response.status_code == 503
    get_settings.cache_clear()


async def test_admin_wipe_runs_wipe(
    client: AsyncClient, trigger_secrets, use_fake_service, seeded_db: InMemoryFirestore
) -> None:
    response = await client.post(
        "/api/v1/accounts/u1/wipe", headers={"X-Admin-Secret": TEST_ADMIN_SECRET}
    )

    assert response.status_code == 200
    assert response.json()["user_id"] == "u1"
    assert "users/u1" not in seeded_db.docs


async def test_wipe_without_firestore_returns_503(
    client: AsyncClient, trigger_secrets
) -> None:
    """Without the override the real dependency finds no Firestore client."""
    response = await client.post(
        "/api/v1/accounts/u1/wipe", headers={"X-Admin-Secret": TEST_ADMIN_SECRET}
    )
    assert response.status_code == 503
