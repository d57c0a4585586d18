"""
Pydantic schemas for blackout windows.
"""

from typing import Literal, Optional

from pydantic import Field

from esports_scheduler.schemas.common import CamelModel, UtcDatetime


class BlackoutCreate(CamelModel):
    starts_at: UtcDatetime
    ends_at: UtcDatetime
    scope: Literal["ALL", "COMPUTER"] = "ALL"
    computer_id: Optional[int] = None
    reason: Optional[str] = Field(None, max_length=255)


class BlackoutResponse(CamelModel):
    id: str
    starts_at: UtcDatetime
    ends_at: UtcDatetime
    scope: str
    computer_id: Optional[int]
    reason: Optional[str]
