"""Account wipe API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from tripzi.application.dtos.account import WipeResult


class _UserDeletedData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    uid: str = Field(..., min_length=1)


class UserDeletedEvent(BaseModel):
    """Account-deletion event from the identity provider.

    Accepts either {"uid": ...} or the {"data": {"uid": ...}} envelope.
    """

    model_config = ConfigDict(extra="ignore")

    uid: str | None = None
    data: _UserDeletedData | None = None

    @property
    def user_id(self) -> str | None:
        if self.uid:
            return self.uid
        return self.data.uid if self.data else None


class WipeResultResponse(BaseModel):
    """Summary of a completed wipe."""

    user_id: str
    deletes_issued: int = Field(..., description="Document deletes sent in the final flush")
    updates_issued: int = Field(..., description="Document updates sent in the final flush")
    direct_chats_deleted: int
    group_chats_left: int
    storage_objects_deleted: int
    storage_failures: int = Field(..., description="Storage deletions that failed and were skipped")
    storage_failed_refs: list[str] = Field(default_factory=list)
    started_at: datetime
    finished_at: datetime

    @classmethod
    def from_result(cls, result: WipeResult) -> "WipeResultResponse":
        return cls(
            user_id=result.user_id,
            deletes_issued=result.deletes_issued,
            updates_issued=result.updates_issued,
            direct_chats_deleted=result.direct_chats_deleted,
            group_chats_left=result.group_chats_left,
            storage_objects_deleted=result.storage_objects_deleted,
            storage_failures=result.storage_failures,
            storage_failed_refs=list(result.storage_failed_refs),
            started_at=result.started_at,
            finished_at=result.finished_at,
        )
