"""
Pydantic schemas for reservation request/response validation.

Request fields are optional at the schema level so that missing or
inconsistent values are reported by the booking engine as a 400 with a
specific message, the same as every other booking validation failure.
"""

from typing import Optional

from pydantic import Field

from esports_scheduler.schemas.common import CamelModel, UtcDatetime
from esports_scheduler.schemas.reference import ComputerRef, TeamRef, UserRef


class ReservationCreate(CamelModel):
    team_id: Optional[str] = None
    computer_ids: Optional[list[int]] = None
    # Older clients send a single computer
    computer_id: Optional[int] = None
    starts_at: Optional[UtcDatetime] = None
    ends_at: Optional[UtcDatetime] = None

    def resolved_computer_ids(self) -> list[int]:
        if self.computer_ids is not None:
            return list(self.computer_ids)
        if self.computer_id is not None:
            return [self.computer_id]
        return []


class ReservationUpdate(ReservationCreate):
    group_id: Optional[str] = None


class ReservationResponse(CamelModel):
    id: str
    group_id: Optional[str]
    team_id: str
    computer_id: int
    starts_at: UtcDatetime
    ends_at: UtcDatetime
    created_by_user_id: str
    status: str
    computer: Optional[ComputerRef] = None
    team: Optional[TeamRef] = None
    created_by: Optional[UserRef] = None


class ReservationGroupResponse(CamelModel):
    id: str
    group_id: Optional[str] = None
    team_id: str
    team: Optional[TeamRef] = None
    starts_at: UtcDatetime
    ends_at: UtcDatetime
    computers: list[ComputerRef] = Field(default_factory=list)
    created_by: Optional[UserRef] = None


class ReservationDeleteResponse(CamelModel):
    deleted: int


class OkResponse(CamelModel):
    ok: bool = True
