"""DTOs for account wipe use cases."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class StorageDeleteOutcome(str, Enum):
    """Result of a best-effort storage deletion.

    Only OK and NOT_FOUND mean the object is gone; UNAVAILABLE and SKIPPED are
    logged and never abort a wipe.
    """

    OK = "ok"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    SKIPPED = "skipped"  # URL not resolvable to an object owned by the record


@dataclass
class WipeTally:
    """Mutable counters accumulated during one wipe."""

    direct_chats_deleted: int = 0
    group_chats_left: int = 0
    storage_objects_deleted: int = 0
    storage_failures: int = 0
    storage_failed_refs: list[str] = field(default_factory=list)

    def record_storage(self, ref: str, outcome: StorageDeleteOutcome, deleted: int = 0) -> None:
        if outcome is StorageDeleteOutcome.UNAVAILABLE:
            self.storage_failures += 1
            self.storage_failed_refs.append(ref)
        self.storage_objects_deleted += deleted


@dataclass(frozen=True)
class WipeResult:
    """Summary of a completed wipe (all document writes flushed)."""

    user_id: str
    deletes_issued: int
    updates_issued: int
    direct_chats_deleted: int
    group_chats_left: int
    storage_objects_deleted: int
    storage_failures: int
    storage_failed_refs: tuple[str, ...]
    started_at: datetime
    finished_at: datetime
