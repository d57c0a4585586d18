"""
Read-only lookups over bookable computers and teams.
"""

from typing import Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from esports_scheduler.models.computer import Computer
from esports_scheduler.models.team import Team


async def list_computers(db: AsyncSession, active_only: bool = False) -> list[Computer]:
    query = select(Computer).order_by(Computer.id.asc())
    if active_only:
        query = query.where(Computer.is_active.is_(True))
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_active(db: AsyncSession) -> list[Computer]:
    return await list_computers(db, active_only=True)


async def check_all_active(db: AsyncSession, computer_ids: Sequence[int]) -> tuple[bool, list[int]]:
    """
    Returns (all_ok, rejected_ids). An id is rejected when it does not exist
    or the computer has been deactivated.
    """
    if not computer_ids:
        return True, []
    result = await db.execute(
        select(Computer.id).where(
            Computer.id.in_(computer_ids),
            Computer.is_active.is_(True),
        )
    )
    found = set(result.scalars().all())
    rejected = [cid for cid in computer_ids if cid not in found]
    return not rejected, rejected


async def lock_computers(db: AsyncSession, computer_ids: Iterable[int]) -> list[Computer]:
    """
    Row-lock the given computers for the rest of the transaction.

    Every writer locks in ascending id order, so two bookings that share a
    computer serialize instead of both passing the conflict check.
    Dialects without FOR UPDATE (SQLite) ignore the clause.
    """
    ids = sorted(set(computer_ids))
    if not ids:
        return []
    result = await db.execute(
        select(Computer)
        .where(Computer.id.in_(ids))
        .order_by(Computer.id.asc())
        .with_for_update()
    )
    return list(result.scalars().all())


async def labels_for(db: AsyncSession, computer_ids: Iterable[int]) -> list[str]:
    ids = list(dict.fromkeys(computer_ids))
    if not ids:
        return []
    result = await db.execute(select(Computer.id, Computer.label).where(Computer.id.in_(ids)))
    labels = dict(result.all())
    return [labels.get(cid, str(cid)) for cid in ids]


async def get_team(db: AsyncSession, team_id: str) -> Optional[Team]:
    return await db.get(Team, team_id)


async def list_teams(db: AsyncSession) -> list[Team]:
    result = await db.execute(select(Team).order_by(Team.game_title.asc(), Team.name.asc()))
    return list(result.scalars().all())
