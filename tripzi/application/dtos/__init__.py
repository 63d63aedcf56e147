"""Application DTOs (no dependency on infrastructure)."""

from tripzi.application.dtos.account import (
    StorageDeleteOutcome,
    WipeResult,
    WipeTally,
)

__all__ = ["StorageDeleteOutcome", "WipeResult", "WipeTally"]
