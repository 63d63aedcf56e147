"""Account wipe triggers: identity-provider deletion event and admin re-run."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import ValidationError

from tripzi.api.v1.dependencies import (
    get_account_wipe_service,
    require_admin_secret,
    verify_account_event,
)
from tripzi.application.interfaces.services import IAccountWipeService
from tripzi.domain.exceptions import ValidationException
from tripzi.schemas.account import UserDeletedEvent, WipeResultResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/events/user-deleted", response_model=WipeResultResponse)
async def on_user_deleted(
    body: Annotated[bytes, Depends(verify_account_event)],
    service: Annotated[IAccountWipeService, Depends(get_account_wipe_service)],
) -> WipeResultResponse:
    """Wipe the data of an account the identity provider just deleted.

    Callers send X-Webhook-Signature-256: sha256=<hmac_sha256(secret, body)>.
    A failed wipe answers 500 so the event is redelivered; re-running is safe.
    """
    try:
        event = UserDeletedEvent.model_validate_json(body)
    except ValidationError as e:
        raise ValidationException("Malformed account event body", field="uid") from e
    user_id = event.user_id
    if not user_id:
        raise ValidationException("Account event has no uid", field="uid")
    logger.info("Received user-deleted event for %s", user_id)
    result = await service.wipe_user_data(user_id)
    return WipeResultResponse.from_result(result)


@router.post(
    "/{uid}/wipe",
    response_model=WipeResultResponse,
    dependencies=[Depends(require_admin_secret)],
)
async def wipe_account(
    uid: str,
    service: Annotated[IAccountWipeService, Depends(get_account_wipe_service)],
) -> WipeResultResponse:
    """Run (or re-run) the wipe for uid. Requires X-Admin-Secret."""
    logger.info("Admin wipe requested for %s", uid)
    result = await service.wipe_user_data(uid)
    return WipeResultResponse.from_result(result)
