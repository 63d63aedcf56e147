"""Tests for the wipe_user maintenance script."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from scripts.wipe_user import wipe_all
from tests.fakes.firestore import InMemoryFirestore
from tripzi.domain.exceptions import AccountWipeFailedException
from tripzi.infrastructure.firebase.services import FirestoreAccountWipeService


async def test_wipe_all_reports_each_user(
    db: InMemoryFirestore,
    wipe_service: FirestoreAccountWipeService,
    capsys: pytest.CaptureFixture[str],
) -> None:
    db.seed("users/u1", {})
    db.seed("users/u2", {})

    failures = await wipe_all(wipe_service, ["u1", "u2"])

    assert failures == 0
    assert "users/u1" not in db.docs
    assert "users/u2" not in db.docs
    out = capsys.readouterr().out
    assert "u1: 3 delete(s)" in out
    assert "u2: 3 delete(s)" in out


async def test_wipe_all_continues_after_failure(capsys: pytest.CaptureFixture[str]) -> None:
    service = AsyncMock()
    service.wipe_user_data.side_effect = [
        AccountWipeFailedException("bad", "flush failed"),
        SimpleNamespace(
            deletes_issued=1,
            updates_issued=0,
            direct_chats_deleted=0,
            group_chats_left=0,
            storage_objects_deleted=0,
            storage_failures=0,
        ),
    ]

    failures = await wipe_all(service, ["bad", "good"])

    assert failures == 1
    assert service.wipe_user_data.await_count == 2
    captured = capsys.readouterr()
    assert "bad: FAILED" in captured.err
    assert "good: 1 delete(s)" in captured.out
