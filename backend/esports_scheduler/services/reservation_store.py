"""
Reservation Store: persisted reservation rows and their grouped view.

Only the booking engine writes through this module. Functions here flush but
never commit; the caller owns the transaction.

GROUPING
========

A booking over N computers is stored as N rows sharing a group_id. Listing
folds rows back into one ReservationGroup per group_id.

Rows written before group_id existed are folded by the composite key
(team_id, starts_at, ends_at, created_by_user_id). That key is a heuristic:
two separate legacy bookings with identical team, interval and creator are
indistinguishable and come back as one group. Legacy groups are read-only;
they can be removed row by row but not edited as a group.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from esports_scheduler.models.computer import Computer
from esports_scheduler.models.reservation import Reservation, STATUS_CONFIRMED
from esports_scheduler.models.team import Team
from esports_scheduler.models.user import User
from esports_scheduler.services.interval import TimeInterval, as_utc

LEGACY_KEY_PREFIX = "legacy:"


@dataclass
class ReservationFilter:
    computer_id: Optional[int] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass
class ReservationGroup:
    id: str
    group_id: Optional[str]
    team_id: str
    team: Optional[Team]
    starts_at: datetime
    ends_at: datetime
    created_by: Optional[User]
    computers: list[Computer] = field(default_factory=list)
    reservation_ids: list[str] = field(default_factory=list)

    @property
    def is_legacy(self) -> bool:
        return self.group_id is None

    @property
    def labels(self) -> list[str]:
        return [c.label for c in self.computers]


def legacy_group_key(row: Reservation) -> str:
    return (
        f"{LEGACY_KEY_PREFIX}{row.team_id}|{as_utc(row.starts_at).isoformat()}"
        f"|{as_utc(row.ends_at).isoformat()}|{row.created_by_user_id}"
    )


def group_rows(rows: Sequence[Reservation]) -> list[ReservationGroup]:
    """Fold rows into groups, keeping the order in which each group is first seen."""
    groups: dict[str, ReservationGroup] = {}
    for row in rows:
        key = row.group_id or legacy_group_key(row)
        group = groups.get(key)
        if group is None:
            group = ReservationGroup(
                id=key,
                group_id=row.group_id,
                team_id=row.team_id,
                team=row.team,
                starts_at=as_utc(row.starts_at),
                ends_at=as_utc(row.ends_at),
                created_by=row.created_by,
            )
            groups[key] = group
        if row.computer is not None and all(c.id != row.computer_id for c in group.computers):
            group.computers.append(row.computer)
        group.reservation_ids.append(row.id)

    for group in groups.values():
        group.computers.sort(key=lambda c: c.id)
    return list(groups.values())


def _overlapping(interval: TimeInterval):
    return (Reservation.starts_at < interval.end) & (Reservation.ends_at > interval.start)


async def find_conflicts(
    db: AsyncSession,
    interval: TimeInterval,
    computer_ids: Sequence[int],
    status: str = STATUS_CONFIRMED,
    exclude_group_id: Optional[str] = None,
) -> list[Reservation]:
    query = (
        select(Reservation)
        .where(
            Reservation.computer_id.in_(list(computer_ids)),
            Reservation.status == status,
            _overlapping(interval),
        )
        .order_by(Reservation.computer_id.asc(), Reservation.starts_at.asc())
        .execution_options(populate_existing=True)
    )
    if exclude_group_id is not None:
        # NULL group ids are legacy rows and must still count as conflicts
        query = query.where(
            (Reservation.group_id.is_(None)) | (Reservation.group_id != exclude_group_id)
        )
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_group_rows(db: AsyncSession, group_id: str) -> list[Reservation]:
    result = await db.execute(
        select(Reservation)
        .where(Reservation.group_id == group_id)
        .order_by(Reservation.computer_id.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_group(db: AsyncSession, group_id: str) -> Optional[ReservationGroup]:
    groups = group_rows(await get_group_rows(db, group_id))
    return groups[0] if groups else None


async def create_group(
    db: AsyncSession,
    group_id: str,
    team_id: str,
    computer_ids: Sequence[int],
    interval: TimeInterval,
    creator_id: str,
) -> list[Reservation]:
    rows = [
        Reservation(
            group_id=group_id,
            team_id=team_id,
            computer_id=computer_id,
            starts_at=interval.start,
            ends_at=interval.end,
            created_by_user_id=creator_id,
            status=STATUS_CONFIRMED,
        )
        for computer_id in computer_ids
    ]
    db.add_all(rows)
    await db.flush()
    return rows


async def delete_group(db: AsyncSession, group_id: str) -> int:
    result = await db.execute(delete(Reservation).where(Reservation.group_id == group_id))
    return result.rowcount


async def replace_group(
    db: AsyncSession,
    group_id: str,
    team_id: str,
    computer_ids: Sequence[int],
    interval: TimeInterval,
    creator_id: str,
) -> list[Reservation]:
    """Delete and re-create the group's rows under the same group_id and creator."""
    await delete_group(db, group_id)
    return await create_group(db, group_id, team_id, computer_ids, interval, creator_id)


async def get_row(db: AsyncSession, reservation_id: str) -> Optional[Reservation]:
    result = await db.execute(
        select(Reservation)
        .where(Reservation.id == reservation_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def delete_row(db: AsyncSession, reservation_id: str) -> int:
    result = await db.execute(delete(Reservation).where(Reservation.id == reservation_id))
    return result.rowcount


async def list_rows(db: AsyncSession, filters: Optional[ReservationFilter] = None) -> list[Reservation]:
    query = (
        select(Reservation)
        .order_by(Reservation.starts_at.asc(), Reservation.computer_id.asc())
        .execution_options(populate_existing=True)
    )
    if filters is not None:
        if filters.computer_id is not None:
            query = query.where(Reservation.computer_id == filters.computer_id)
        if filters.start is not None and filters.end is not None:
            query = query.where(
                Reservation.starts_at < as_utc(filters.end),
                Reservation.ends_at > as_utc(filters.start),
            )
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_grouped(
    db: AsyncSession,
    filters: Optional[ReservationFilter] = None,
) -> list[ReservationGroup]:
    """
    Grouped listing. A computer filter selects the groups that touch that
    computer, and each selected group is returned with all of its computers.
    """
    rows = await list_rows(db, filters)
    if filters is not None and filters.computer_id is not None:
        group_ids = {row.group_id for row in rows if row.group_id is not None}
        if group_ids:
            siblings = await db.execute(
                select(Reservation)
                .where(Reservation.group_id.in_(group_ids))
                .order_by(Reservation.starts_at.asc(), Reservation.computer_id.asc())
                .execution_options(populate_existing=True)
            )
            legacy = [row for row in rows if row.group_id is None]
            rows = sorted(
                list(siblings.scalars().all()) + legacy,
                key=lambda r: (as_utc(r.starts_at), r.computer_id),
            )
    return group_rows(rows)


async def count_before(db: AsyncSession, cutoff: datetime) -> int:
    result = await db.execute(
        select(func.count()).select_from(Reservation).where(Reservation.ends_at < as_utc(cutoff))
    )
    return result.scalar_one()


async def purge_before(db: AsyncSession, cutoff: datetime) -> int:
    """Delete rows whose ends_at is strictly before the cutoff."""
    result = await db.execute(delete(Reservation).where(Reservation.ends_at < as_utc(cutoff)))
    return result.rowcount
