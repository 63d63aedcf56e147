"""Pytest configuration and fixtures for the account wipe service.

Environment is set before tripzi.main is imported so Settings validation
passes without real credentials. HTTP tests run against the ASGI app (the
lifespan does not run, so Firestore and storage are never initialized) and
swap the wipe service in through dependency_overrides.
"""

import json
import os

os.environ.setdefault(
    "FIREBASE_SERVICE_ACCOUNT_KEY",
    json.dumps({"type": "service_account", "project_id": "tripzi-test"}),
)
os.environ.setdefault("STORAGE_BACKEND", "gcs")
os.environ.setdefault("GCS_BUCKET", "tripzi-test.appspot.com")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from tests.fakes import TEST_ADMIN_SECRET, TEST_EVENT_SECRET  # noqa: E402
from tests.fakes.firestore import InMemoryFirestore  # noqa: E402
from tests.fakes.storage import InMemoryStorage  # noqa: E402
from tripzi.core.config import get_settings  # noqa: E402
from tripzi.infrastructure.firebase.services import FirestoreAccountWipeService  # noqa: E402
from tripzi.main import app  # noqa: E402


@pytest.fixture
def db() -> InMemoryFirestore:
    return InMemoryFirestore()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def wipe_service(db: InMemoryFirestore, storage: InMemoryStorage) -> FirestoreAccountWipeService:
    """Wipe service over the in-memory doubles."""
    return FirestoreAccountWipeService(db, storage)


@pytest.fixture
def trigger_secrets(monkeypatch: pytest.MonkeyPatch):
    """Configure ACCOUNT_EVENT_SECRET and ADMIN_API_SECRET for the request."""
    monkeypatch.setenv("ACCOUNT_EVENT_SECRET", TEST_EVENT_SECRET)
    monkeypatch.setenv("ADMIN_API_SECRET", TEST_ADMIN_SECRET)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
