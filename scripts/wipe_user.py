"""Wipe all data of one or more users (profile, trips, chats, storage, ...).

Usage:
    uv run python -m scripts.wipe_user <uid> [<uid> ...]
Uses the same Firestore credentials and storage backend as the API.
Exits non-zero if any wipe fails; re-running for the same uid is safe.
"""

import asyncio
import sys

from tripzi.application.interfaces.services import IAccountWipeService
from tripzi.core.config import get_settings
from tripzi.domain.exceptions import TripziException
from tripzi.infrastructure.external.storage.factory import StorageFactory
from tripzi.infrastructure.firebase.client import (
    close_firebase,
    get_firestore_client,
    init_firebase,
)
from tripzi.infrastructure.firebase.services import FirestoreAccountWipeService
from tripzi.shared.telemetry.logging import setup_logging


async def wipe_all(service: IAccountWipeService, user_ids: list[str]) -> int:
    """Wipe each user in turn; return the number of failures."""
    failures = 0
    for user_id in user_ids:
        try:
            result = await service.wipe_user_data(user_id)
        except TripziException as e:
            print(f"{user_id}: FAILED ({e.message})", file=sys.stderr)
            failures += 1
            continue
        print(
            f"{user_id}: {result.deletes_issued} delete(s), {result.updates_issued} update(s), "
            f"{result.direct_chats_deleted} direct chat(s) deleted, "
            f"{result.group_chats_left} group chat(s) left, "
            f"{result.storage_objects_deleted} storage object(s) deleted, "
            f"{result.storage_failures} storage failure(s)"
        )
    return failures


async def main() -> None:
    """Wipe every uid given on the command line."""
    if len(sys.argv) < 2:
        print("Usage: uv run python -m scripts.wipe_user <uid> [<uid> ...]", file=sys.stderr)
        sys.exit(1)
    user_ids = sys.argv[1:]

    setup_logging()
    settings = get_settings()
    if not init_firebase():
        print(
            "Firestore not configured (set FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_SERVICE_ACCOUNT_PATH)",
            file=sys.stderr,
        )
        sys.exit(1)
    storage = None
    try:
        storage = StorageFactory.create_storage_service(settings)
        service = FirestoreAccountWipeService(
            get_firestore_client(),
            storage,
            batch_size=settings.bulk_write_batch_size,
        )
        failures = await wipe_all(service, user_ids)
    finally:
        if storage is not None and hasattr(storage, "aclose"):
            await storage.aclose()
        await close_firebase()

    print(f"Done. Wiped {len(user_ids) - failures} of {len(user_ids)} user(s)")
    if failures:
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
