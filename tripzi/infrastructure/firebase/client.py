"""Process-wide Firestore REST client.

Credentials come from FIREBASE_SERVICE_ACCOUNT_KEY (inline JSON) or, failing
that, FIREBASE_SERVICE_ACCOUNT_PATH. The GCS storage backend reads the same
service account through load_service_account_info().
"""

import json
import logging
from pathlib import Path

from tripzi.core.config import get_settings
from tripzi.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    _get_credentials,
)

logger = logging.getLogger(__name__)

_client: FirestoreRESTClient | None = None


def _read_key_file(raw_path: str) -> dict | None:
    path = Path(raw_path).expanduser()
    if not path.is_file():
        logger.warning("FIREBASE_SERVICE_ACCOUNT_PATH does not exist: %s", path.resolve())
        return None
    return json.loads(path.read_text(encoding="utf-8"))


def load_service_account_info() -> dict | None:
    """Service account JSON as a dict, or None when neither setting is usable.

    Raises ValueError if FIREBASE_SERVICE_ACCOUNT_KEY is set but is not JSON.
    """
    settings = get_settings()
    inline = settings.firebase_service_account_key
    if inline is not None and inline.get_secret_value():
        try:
            return json.loads(inline.get_secret_value())
        except json.JSONDecodeError as e:
            raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e
    if settings.firebase_service_account_path:
        return _read_key_file(settings.firebase_service_account_path)
    return None


def init_firebase() -> bool:
    """Create the shared client. Safe to call twice.

    Returns False, after logging, when credentials are missing or broken so the
    API can still start and answer 503 from the wipe endpoints.
    """
    global _client
    if _client is not None:
        return True
    try:
        service_account = load_service_account_info()
        if not service_account:
            logger.error("No Firebase service account configured")
            return False
        project_id = service_account.get("project_id")
        if not project_id:
            logger.error("Firebase service account has no project_id")
            return False
        _client = FirestoreRESTClient(project_id, _get_credentials(service_account))
    except Exception:
        logger.exception("Could not initialize the Firestore client")
        return False
    logger.info("Firestore client ready (project=%s)", project_id)
    return True


def get_firestore_client() -> FirestoreRESTClient | None:
    return _client


async def close_firebase() -> None:
    """Release the client's connection pool; no-op if it was never created."""
    global _client
    if _client is None:
        return
    client, _client = _client, None
    await client.aclose()
