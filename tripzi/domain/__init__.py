"""Domain layer: exceptions shared by application and infrastructure.

No dependencies on infrastructure or presentation.
"""

from tripzi.domain.exceptions import (
    AccountWipeFailedException,
    AuthenticationException,
    TripziException,
    ValidationException,
)

__all__ = [
    "AccountWipeFailedException",
    "AuthenticationException",
    "TripziException",
    "ValidationException",
]
