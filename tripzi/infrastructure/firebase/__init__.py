"""Firestore integration (REST API, no firebase-admin)."""

from tripzi.infrastructure.firebase.bulk_writer import BulkWriter
from tripzi.infrastructure.firebase.client import (
    close_firebase,
    get_firestore_client,
    init_firebase,
)
from tripzi.infrastructure.firebase.field_values import (
    DELETE_FIELD,
    ArrayRemove,
)

__all__ = [
    "DELETE_FIELD",
    "ArrayRemove",
    "BulkWriter",
    "close_firebase",
    "get_firestore_client",
    "init_firebase",
]
