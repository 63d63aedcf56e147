"""Service interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from tripzi.application.dtos.account import WipeResult


class IAccountWipeService(Protocol):
    """Removes or redacts every record and object belonging to one user."""

    async def wipe_user_data(self, user_id: str) -> WipeResult:
        """Wipe the user's data; raise on discovery or flush failure.

        Safe to re-run after a partial failure: work is re-derived from
        current state and already-deleted records are no-ops.
        """
        ...
