"""
Blackout window administration.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from esports_scheduler.core.security import CallerIdentity, require_admin
from esports_scheduler.db.session import get_db
from esports_scheduler.schemas.blackout import BlackoutCreate, BlackoutResponse
from esports_scheduler.schemas.reservation import OkResponse
from esports_scheduler.services import blackout_registry
from esports_scheduler.services.interval import TimeInterval

router = APIRouter(prefix="/blackouts", tags=["Blackouts"])


@router.get("", response_model=list[BlackoutResponse])
async def list_blackouts(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await blackout_registry.list_blackouts(db, start, end)


@router.post("", response_model=BlackoutResponse, status_code=status.HTTP_201_CREATED)
async def create_blackout(
    payload: BlackoutCreate,
    caller: CallerIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Block booking facility-wide (scope ALL) or for one computer (scope COMPUTER)."""
    return await blackout_registry.create_blackout(
        db,
        TimeInterval(payload.starts_at, payload.ends_at),
        scope=payload.scope,
        computer_id=payload.computer_id,
        reason=payload.reason,
    )


@router.delete("/{blackout_id}", response_model=OkResponse)
async def delete_blackout(
    blackout_id: str,
    caller: CallerIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await blackout_registry.delete_blackout(db, blackout_id)
    return OkResponse()
