"""X-Request-ID propagation.

The id is kept from the caller when it looks safe to log, otherwise replaced
by a UUID, then returned on the response. Event deliveries that carry their
own id can be matched to the wipe log lines this way.
"""

import re
import uuid
from typing import Callable

_SAFE_ID = re.compile(r"[A-Za-z0-9_-]{1,64}")


def sanitize_request_id(raw: str | None) -> str:
    """Return the trimmed id when it is 1-64 of [A-Za-z0-9_-], else a new UUID4."""
    candidate = (raw or "").strip()
    if _SAFE_ID.fullmatch(candidate):
        return candidate
    return str(uuid.uuid4())


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    """Wrap an ASGI app; the id ends up in scope["state"]["request_id"]."""
    header_key = header_name.lower().encode("latin-1")

    async def middleware(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        incoming = next(
            (value.decode("latin-1") for key, value in scope.get("headers", []) if key.lower() == header_key),
            None,
        )
        request_id = sanitize_request_id(incoming)
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_id(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (header_key, request_id.encode("latin-1")),
                ]
            await send(message)

        await app(scope, receive, send_with_id)

    return middleware
