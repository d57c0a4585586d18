"""
Pydantic schemas for computers, teams and users as they appear in responses.
"""

from typing import Optional

from esports_scheduler.schemas.common import CamelModel


class ComputerResponse(CamelModel):
    id: int
    label: str
    is_active: bool


class ComputerRef(CamelModel):
    id: int
    label: str


class TeamResponse(CamelModel):
    id: str
    name: str
    game_title: str


class TeamRef(CamelModel):
    name: str
    game_title: str


class UserRef(CamelModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
