"""Presentation-layer dependency injection (composition root).

Routes depend only on these providers, never on infrastructure directly.
"""

from tripzi.api.v1.dependencies.account import get_account_wipe_service
from tripzi.api.v1.dependencies.auth import require_admin_secret, verify_account_event

__all__ = [
    "get_account_wipe_service",
    "require_admin_secret",
    "verify_account_event",
]
