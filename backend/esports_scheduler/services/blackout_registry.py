"""
Blackout windows: facility-wide (scope ALL) or single-computer (scope COMPUTER)
periods during which booking is disallowed.

The booking engine only reads from here. Administrators create and remove
windows through the blackout endpoints.
"""

from typing import Optional, Sequence

from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from esports_scheduler.core.exceptions import ValidationError, NotFoundError
from esports_scheduler.core.logging import get_logger
from esports_scheduler.models.blackout import Blackout, SCOPE_ALL, SCOPE_COMPUTER
from esports_scheduler.models.computer import Computer
from esports_scheduler.services.interval import TimeInterval

logger = get_logger(__name__)


def _blocking_clause(interval: TimeInterval, computer_ids: Sequence[int]):
    return and_(
        Blackout.starts_at < interval.end,
        Blackout.ends_at > interval.start,
        or_(
            Blackout.scope == SCOPE_ALL,
            and_(Blackout.scope == SCOPE_COMPUTER, Blackout.computer_id.in_(list(computer_ids))),
        ),
    )


async def find_blocking(
    db: AsyncSession,
    interval: TimeInterval,
    computer_ids: Sequence[int],
) -> Optional[Blackout]:
    """First blackout that blocks any of the computers during the interval, if any."""
    result = await db.execute(
        select(Blackout)
        .where(_blocking_clause(interval, computer_ids))
        .order_by(Blackout.starts_at.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_blocking(
    db: AsyncSession,
    interval: TimeInterval,
    computer_ids: Sequence[int],
) -> list[Blackout]:
    """Every blackout that blocks any of the computers during the interval."""
    result = await db.execute(
        select(Blackout)
        .where(_blocking_clause(interval, computer_ids))
        .order_by(Blackout.starts_at.asc())
    )
    return list(result.scalars().all())


def blocked_computer_ids(blocking: Sequence[Blackout], computer_ids: Sequence[int]) -> list[int]:
    """Requested computers covered by the given windows, ascending. An ALL window covers them all."""
    if any(b.scope == SCOPE_ALL for b in blocking):
        return sorted(set(computer_ids))
    scoped = {b.computer_id for b in blocking}
    return sorted(cid for cid in set(computer_ids) if cid in scoped)


async def has_blackout_overlapping(
    db: AsyncSession,
    interval: TimeInterval,
    computer_ids: Sequence[int],
) -> bool:
    return await find_blocking(db, interval, computer_ids) is not None


async def list_blackouts(
    db: AsyncSession,
    start=None,
    end=None,
) -> list[Blackout]:
    query = select(Blackout).order_by(Blackout.starts_at.asc())
    if start is not None and end is not None:
        window = TimeInterval(start, end)
        query = query.where(Blackout.starts_at < window.end, Blackout.ends_at > window.start)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_blackout(
    db: AsyncSession,
    interval: TimeInterval,
    scope: str,
    computer_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> Blackout:
    if scope not in (SCOPE_ALL, SCOPE_COMPUTER):
        raise ValidationError(f"Unknown blackout scope: {scope}")
    if scope == SCOPE_COMPUTER:
        if computer_id is None:
            raise ValidationError("computerId is required for COMPUTER scope")
        if await db.get(Computer, computer_id) is None:
            raise ValidationError(f"computerId does not exist: {computer_id}")
    elif computer_id is not None:
        raise ValidationError("computerId must be omitted for ALL scope")

    blackout = Blackout(
        starts_at=interval.start,
        ends_at=interval.end,
        scope=scope,
        computer_id=computer_id,
        reason=reason,
    )
    db.add(blackout)
    await db.commit()
    await db.refresh(blackout)

    logger.info(
        "blackout_created",
        blackout_id=blackout.id,
        scope=scope,
        computer_id=computer_id,
        starts_at=interval.start.isoformat(),
        ends_at=interval.end.isoformat(),
    )
    return blackout


async def delete_blackout(db: AsyncSession, blackout_id: str) -> None:
    blackout = await db.get(Blackout, blackout_id)
    if blackout is None:
        raise NotFoundError("Blackout not found")
    await db.delete(blackout)
    await db.commit()
    logger.info("blackout_deleted", blackout_id=blackout_id)
