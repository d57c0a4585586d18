"""
Change event pushed to stream subscribers. Advisory only: receivers re-fetch
current state instead of applying it as a delta.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

EVENT_CREATED = "created"
EVENT_UPDATED = "updated"
EVENT_DELETED = "deleted"


class ChangeEvent(BaseModel):
    type: Literal["created", "updated", "deleted"]
    group_id: str = Field(..., alias="groupId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
