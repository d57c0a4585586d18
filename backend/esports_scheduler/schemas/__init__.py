from esports_scheduler.schemas.reference import ComputerResponse, TeamResponse
from esports_scheduler.schemas.reservation import (
    ReservationCreate, ReservationUpdate, ReservationResponse,
    ReservationGroupResponse, ReservationDeleteResponse, OkResponse,
)
from esports_scheduler.schemas.blackout import BlackoutCreate, BlackoutResponse
from esports_scheduler.schemas.purge import PurgeResponse
from esports_scheduler.schemas.change_event import ChangeEvent

__all__ = [
    "ComputerResponse", "TeamResponse",
    "ReservationCreate", "ReservationUpdate", "ReservationResponse",
    "ReservationGroupResponse", "ReservationDeleteResponse", "OkResponse",
    "BlackoutCreate", "BlackoutResponse",
    "PurgeResponse",
    "ChangeEvent",
]
