"""Caller authentication for the wipe triggers (shared secrets, no user sessions)."""

from __future__ import annotations

import hashlib
import hmac
from typing import Annotated

from fastapi import Header, HTTPException, Request

from tripzi.core.config import get_settings
from tripzi.domain.exceptions import AuthenticationException

SIGNATURE_HEADER = "X-Webhook-Signature-256"
ADMIN_SECRET_HEADER = "X-Admin-Secret"


def verify_webhook_signature(body: bytes, signature_header: str | None, secret: str) -> bool:
    """Return True if the signature header matches sha256=HMAC-SHA256(secret, body)."""
    if not signature_header or not signature_header.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature_header[7:].strip(), expected)


async def verify_account_event(request: Request) -> bytes:
    """Check the event signature and return the raw body.

    ACCOUNT_EVENT_SECRET must be set (503 otherwise); a missing or wrong
    signature is a 401.
    """
    secret = get_settings().account_event_secret
    if secret is None or not secret.get_secret_value():
        raise HTTPException(
            status_code=503,
            detail="Account events are not configured (ACCOUNT_EVENT_SECRET is not set).",
        )
    body = await request.body()
    if not verify_webhook_signature(
        body, request.headers.get(SIGNATURE_HEADER), secret.get_secret_value()
    ):
        raise AuthenticationException("Invalid or missing webhook signature")
    return body


async def require_admin_secret(
    x_admin_secret: Annotated[str | None, Header(alias=ADMIN_SECRET_HEADER)] = None,
) -> None:
    """Guard administrative routes with the ADMIN_API_SECRET shared secret."""
    secret = get_settings().admin_api_secret
    if secret is None or not secret.get_secret_value():
        raise HTTPException(
            status_code=503,
            detail="Admin API is not configured (ADMIN_API_SECRET is not set).",
        )
    if not x_admin_secret or not hmac.compare_digest(
        x_admin_secret.encode(), secret.get_secret_value().encode()
    ):
        raise AuthenticationException("Invalid or missing admin secret")
