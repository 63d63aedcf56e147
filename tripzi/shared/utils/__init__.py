"""Shared utilities: datetime and identifier validation."""

from tripzi.shared.utils.datetime import utc_now
from tripzi.shared.utils.identifiers import DocumentIdValidator, validate_document_id

__all__ = [
    "DocumentIdValidator",
    "utc_now",
    "validate_document_id",
]
