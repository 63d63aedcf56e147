"""Firestore-backed application services."""

from tripzi.infrastructure.firebase.services.account_wipe_firestore import (
    FirestoreAccountWipeService,
)

__all__ = ["FirestoreAccountWipeService"]
