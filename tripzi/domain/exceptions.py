"""Errors raised by the account wipe flow.

They carry no HTTP knowledge; core.exception_handlers turns error_code into a
status and to_dict() into the response body. The CLI prints .message.
"""

from typing import Any


class TripziException(Exception):
    """Root of the service's errors.

    Attributes:
        message: Text safe to return to the caller.
        error_code: Stable machine-readable code (class name when not given).
        details: Extra context such as the offending field or user id.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or type(self).__name__
        self.details = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message, "details": self.details}


class ValidationException(TripziException):
    """A user id or event body that cannot be acted on."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", {"field": field} if field else None)


class AuthenticationException(TripziException):
    """Caller failed the webhook signature or admin secret check."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class AccountWipeFailedException(TripziException):
    """A wipe stopped before completing (a discovery read or the final flush failed).

    Nothing about the wipe is stored between runs, so retrying re-discovers
    whatever is left and finishes the job.
    """

    def __init__(self, user_id: str, reason: str) -> None:
        super().__init__(
            f"Account wipe failed for user {user_id}",
            "ACCOUNT_WIPE_FAILED",
            {"user_id": user_id, "reason": reason},
        )
