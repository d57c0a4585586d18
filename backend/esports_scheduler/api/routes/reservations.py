"""
Reservation endpoints. Every write goes through the booking engine.
"""

from datetime import datetime
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from esports_scheduler.api.deps import get_booking_engine
from esports_scheduler.core.config import get_settings
from esports_scheduler.core.exceptions import ValidationError
from esports_scheduler.core.security import CallerIdentity, require_admin
from esports_scheduler.db.session import get_db
from esports_scheduler.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationResponse,
    ReservationGroupResponse,
    ReservationDeleteResponse,
    OkResponse,
)
from esports_scheduler.services import reservation_store
from esports_scheduler.services.booking_engine import BookingEngine
from esports_scheduler.services.interfaces.notifier import ChangeNotifier
from esports_scheduler.services.interval import TimeInterval
from esports_scheduler.services.notifier_factory import get_notifier
from esports_scheduler.services.reservation_store import ReservationFilter
from esports_scheduler.services.stream_service import event_stream

settings = get_settings()
router = APIRouter(prefix="/reservations", tags=["Reservations"])


def _interval(starts_at: Optional[datetime], ends_at: Optional[datetime]) -> TimeInterval:
    if starts_at is None or ends_at is None:
        raise ValidationError("Invalid payload")
    return TimeInterval(starts_at, ends_at)


@router.get("", response_model=None)
async def list_reservations(
    grouped: bool = Query(False),
    computer_id: Optional[int] = Query(None, alias="computerId"),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> Union[list[ReservationGroupResponse], list[ReservationResponse]]:
    """
    List reservations ordered by start time.
    start/end select rows overlapping [start, end) and only apply when both are given.
    grouped=1 folds rows into one entry per booking.
    """
    filters = ReservationFilter(computer_id=computer_id, start=start, end=end)
    if grouped:
        groups = await reservation_store.list_grouped(db, filters)
        return [ReservationGroupResponse.model_validate(g) for g in groups]
    rows = await reservation_store.list_rows(db, filters)
    return [ReservationResponse.model_validate(r) for r in rows]


@router.post("", response_model=ReservationGroupResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    caller: CallerIdentity = Depends(require_admin),
    engine: BookingEngine = Depends(get_booking_engine),
):
    """
    Book one or more computers for a team over [startsAt, endsAt).
    The creator is always the authenticated caller.
    """
    group = await engine.create(
        team_id=payload.team_id,
        computer_ids=payload.resolved_computer_ids(),
        interval=_interval(payload.starts_at, payload.ends_at),
        creator_id=caller.caller_id,
    )
    return ReservationGroupResponse.model_validate(group)


@router.put("", response_model=ReservationGroupResponse)
async def update_reservation(
    payload: ReservationUpdate,
    caller: CallerIdentity = Depends(require_admin),
    engine: BookingEngine = Depends(get_booking_engine),
):
    """Move or re-target an existing booking group. The original creator is kept."""
    group = await engine.update(
        group_id=payload.group_id,
        team_id=payload.team_id,
        computer_ids=payload.resolved_computer_ids(),
        interval=_interval(payload.starts_at, payload.ends_at),
    )
    return ReservationGroupResponse.model_validate(group)


@router.delete("", response_model=ReservationDeleteResponse)
async def delete_reservation_group(
    group_id: Optional[str] = Query(None, alias="groupId"),
    caller: CallerIdentity = Depends(require_admin),
    engine: BookingEngine = Depends(get_booking_engine),
):
    """Delete every reservation in a booking group."""
    deleted = await engine.delete(group_id)
    return ReservationDeleteResponse(deleted=deleted)


@router.get("/stream")
async def stream_reservations(
    request: Request,
    notifier: ChangeNotifier = Depends(get_notifier),
):
    """Server-Sent Events feed of {type, groupId} change notifications."""
    return StreamingResponse(
        event_stream(notifier, request.is_disconnected, settings.STREAM_KEEPALIVE_SECONDS),
        media_type="text/event-stream; charset=utf-8",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.delete("/{reservation_id}", response_model=OkResponse)
async def delete_single_reservation(
    reservation_id: str,
    caller: CallerIdentity = Depends(require_admin),
    engine: BookingEngine = Depends(get_booking_engine),
):
    """Delete one reservation row."""
    await engine.delete_reservation(reservation_id)
    return OkResponse()
