"""
Read-only reference data: computers and teams.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from esports_scheduler.db.session import get_db
from esports_scheduler.schemas.reference import ComputerResponse, TeamResponse
from esports_scheduler.services import resource_registry

router = APIRouter(tags=["Reference"])


@router.get("/computers", response_model=list[ComputerResponse])
async def list_computers(
    active: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """All computers ordered by id; active=1 hides deactivated ones."""
    if active:
        return await resource_registry.list_active(db)
    return await resource_registry.list_computers(db)


@router.get("/teams", response_model=list[TeamResponse])
async def list_teams(db: AsyncSession = Depends(get_db)):
    """Teams ordered by game title, then name."""
    return await resource_registry.list_teams(db)
