"""Validation for identifiers used as Firestore document IDs and storage path segments."""

import re
from typing import ClassVar

from tripzi.domain.exceptions import ValidationException


class DocumentIdValidator:
    """Firestore document ID rules, restricted to what Firebase Auth issues as uids.

    - 1 to 128 characters, no surrounding whitespace
    - no '/' (would address another collection or storage folder)
    - not '.' or '..', and not of the reserved form __name__
    """

    MAX_LENGTH: ClassVar[int] = 128
    RESERVED_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"^__.*__$")

    @classmethod
    def validate(cls, value: str | None, field: str = "user_id") -> str:
        """Return value if it is a usable document ID; raise ValidationException otherwise."""
        if value is None or not value.strip():
            raise ValidationException(f"{field} must not be empty", field)
        if value != value.strip():
            raise ValidationException(f"{field} must not have surrounding whitespace", field)
        if len(value) > cls.MAX_LENGTH:
            raise ValidationException(f"{field} longer than {cls.MAX_LENGTH} characters", field)
        if "/" in value:
            raise ValidationException(f"{field} must not contain '/'", field)
        if value in (".", "..") or cls.RESERVED_PATTERN.match(value):
            raise ValidationException(f"{field} is a reserved identifier", field)
        return value


def validate_document_id(value: str | None, field: str = "user_id") -> str:
    """Validate and return a document ID; raises ValidationException if invalid."""
    return DocumentIdValidator.validate(value, field)
