"""Account wipe dependencies (composition root)."""

from __future__ import annotations

from fastapi import HTTPException, Request

from tripzi.application.interfaces.services import IAccountWipeService
from tripzi.core.config import get_settings
from tripzi.infrastructure.firebase.client import get_firestore_client
from tripzi.infrastructure.firebase.services import FirestoreAccountWipeService


def get_account_wipe_service(request: Request) -> IAccountWipeService:
    """Build the wipe service from the shared Firestore client and storage backend."""
    client = get_firestore_client()
    if client is None:
        raise HTTPException(
            status_code=503,
            detail="Firestore is not configured (check FIREBASE_SERVICE_ACCOUNT_KEY / _PATH).",
        )
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise HTTPException(status_code=503, detail="Storage backend is not available.")
    return FirestoreAccountWipeService(
        client,
        storage,
        batch_size=get_settings().bulk_write_batch_size,
    )
