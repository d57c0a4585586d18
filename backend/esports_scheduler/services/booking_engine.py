"""
Booking engine: the only writer of reservations.

CONCURRENCY STRATEGY: Resource-keyed row locks + check-then-write
==================================================================

Problem:
  Two admins book PC-03 for overlapping slots at the same moment.
  Both run the conflict query, both see nothing, both insert.
  Result: double-booking.

Solution:
  Inside the booking transaction we first lock the rows of every requested
  computer:

    SELECT ... FROM computers WHERE id IN (:ids) ORDER BY id FOR UPDATE

  then check blackouts, check overlapping CONFIRMED reservations and write.
  A second transaction touching any of the same computers blocks on the lock
  until the first commits, and its conflict query then sees the new rows.
  Locks are always taken in ascending id order so two multi-computer
  bookings cannot deadlock.

  On PostgreSQL the schema also carries an exclusion constraint on
  (computer_id, tstzrange(starts_at, ends_at, '[)')) for CONFIRMED rows.
  If anything slips past the lock, the insert fails and we report it as a
  BookingConflict.

Notifications:
  A ChangeEvent is published only after commit. Delivery is best-effort:
  failure is logged, never rolls back, never reaches the caller.
"""

import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from esports_scheduler.core.exceptions import (
    SchedulerError,
    ValidationError,
    NotFoundError,
    BlackoutConflict,
    BookingConflict,
    StorageError,
)
from esports_scheduler.core.logging import get_logger
from esports_scheduler.core.metrics import (
    booking_latency,
    record_booking_attempt,
    record_notification,
    reservations_purged,
)
from esports_scheduler.schemas.change_event import (
    ChangeEvent,
    EVENT_CREATED,
    EVENT_UPDATED,
    EVENT_DELETED,
)
from esports_scheduler.services import blackout_registry, reservation_store, resource_registry
from esports_scheduler.services.interfaces.notifier import ChangeNotifier
from esports_scheduler.services.interval import TimeInterval, as_utc
from esports_scheduler.services.reservation_store import ReservationGroup

logger = get_logger(__name__)

OVERLAP_CONSTRAINT = "no_computer_overlap"
EXCLUSION_VIOLATION = "23P01"

_OUTCOMES = {
    ValidationError: "validation",
    NotFoundError: "not_found",
    BlackoutConflict: "blackout",
    BookingConflict: "conflict",
}


@dataclass
class PurgeResult:
    cutoff: datetime
    dry_run: bool
    count: int


def normalize_computer_ids(computer_ids: Optional[Sequence[int]]) -> list[int]:
    """Drop duplicates, keep request order."""
    return list(dict.fromkeys(int(cid) for cid in (computer_ids or [])))


def _is_overlap_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    return (
        getattr(orig, "sqlstate", None) == EXCLUSION_VIOLATION
        or getattr(orig, "pgcode", None) == EXCLUSION_VIOLATION
        or OVERLAP_CONSTRAINT in str(orig)
    )


class BookingEngine:
    """
    Validates and commits create / update / delete as atomic transactions
    on the given session, then tells the notifier.
    """

    def __init__(self, db: AsyncSession, notifier: ChangeNotifier):
        self.db = db
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create(
        self,
        team_id: Optional[str],
        computer_ids: Optional[Sequence[int]],
        interval: TimeInterval,
        creator_id: str,
    ) -> ReservationGroup:
        computer_ids = normalize_computer_ids(computer_ids)
        group_id = str(uuid.uuid4())

        async with self._operation("create"):
            await self._validate(team_id, computer_ids)
            async with self._atomic(interval, computer_ids):
                await self._guard(interval, computer_ids)
                await reservation_store.create_group(
                    self.db, group_id, team_id, computer_ids, interval, creator_id
                )

        group = await reservation_store.get_group(self.db, group_id)
        logger.info(
            "reservation_group_created",
            group_id=group_id,
            team_id=team_id,
            computers=group.labels,
            starts_at=interval.start.isoformat(),
            ends_at=interval.end.isoformat(),
            created_by=creator_id,
        )
        await self._notify(ChangeEvent(type=EVENT_CREATED, group_id=group_id))
        return group

    async def update(
        self,
        group_id: Optional[str],
        team_id: Optional[str],
        computer_ids: Optional[Sequence[int]],
        interval: TimeInterval,
    ) -> ReservationGroup:
        """
        Replace a group's team, computers and interval. The group keeps its id
        and its original creator. Its own current rows never count as conflicts.
        """
        computer_ids = normalize_computer_ids(computer_ids)

        async with self._operation("update"):
            if not group_id:
                raise ValidationError("groupId is required")
            await self._validate(team_id, computer_ids)

            async with self._atomic(interval, computer_ids, exclude_group_id=group_id):
                existing = await reservation_store.get_group_rows(self.db, group_id)
                if not existing:
                    raise NotFoundError("Reservation group not found")
                creator_id = existing[0].created_by_user_id

                await self._guard(interval, computer_ids, exclude_group_id=group_id)
                await reservation_store.replace_group(
                    self.db, group_id, team_id, computer_ids, interval, creator_id
                )

        group = await reservation_store.get_group(self.db, group_id)
        logger.info(
            "reservation_group_updated",
            group_id=group_id,
            team_id=team_id,
            computers=group.labels,
            starts_at=interval.start.isoformat(),
            ends_at=interval.end.isoformat(),
        )
        await self._notify(ChangeEvent(type=EVENT_UPDATED, group_id=group_id))
        return group

    async def delete(self, group_id: Optional[str]) -> int:
        """Remove every row of the group. Returns the number of rows deleted."""
        async with self._operation("delete"):
            if not group_id:
                raise ValidationError("groupId is required")
            async with self._atomic():
                if not await reservation_store.get_group_rows(self.db, group_id):
                    raise NotFoundError("Reservation group not found", deleted=0)
                deleted = await reservation_store.delete_group(self.db, group_id)

        logger.info("reservation_group_deleted", group_id=group_id, deleted=deleted)
        await self._notify(ChangeEvent(type=EVENT_DELETED, group_id=group_id))
        return deleted

    async def delete_reservation(self, reservation_id: str) -> None:
        """Remove a single row, e.g. one computer out of a group or a legacy row."""
        async with self._operation("delete"):
            async with self._atomic():
                row = await reservation_store.get_row(self.db, reservation_id)
                if row is None:
                    raise NotFoundError("Not found")
                group_key = row.group_id or reservation_store.legacy_group_key(row)
                await reservation_store.delete_row(self.db, reservation_id)

        logger.info("reservation_deleted", reservation_id=reservation_id, group_id=group_key)
        await self._notify(ChangeEvent(type=EVENT_DELETED, group_id=group_key))

    async def purge(self, cutoff: datetime, dry_run: bool = False) -> PurgeResult:
        """
        Remove rows whose ends_at is strictly before the cutoff.
        No conflict checks and no change events; dry_run only counts.
        """
        cutoff = as_utc(cutoff)
        if dry_run:
            count = await reservation_store.count_before(self.db, cutoff)
            logger.info("reservations_purge_preview", cutoff=cutoff.isoformat(), would_delete=count)
            return PurgeResult(cutoff=cutoff, dry_run=True, count=count)

        async with self._atomic():
            count = await reservation_store.purge_before(self.db, cutoff)

        reservations_purged.inc(count)
        logger.info("reservations_purged", cutoff=cutoff.isoformat(), deleted=count)
        return PurgeResult(cutoff=cutoff, dry_run=False, count=count)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _validate(self, team_id: Optional[str], computer_ids: list[int]) -> None:
        if not team_id or not computer_ids:
            raise ValidationError("Invalid payload")

        if await resource_registry.get_team(self.db, team_id) is None:
            raise ValidationError("teamId does not exist")

        ok, rejected = await resource_registry.check_all_active(self.db, computer_ids)
        if not ok:
            raise ValidationError(
                f"Invalid or inactive computerId(s): {', '.join(str(cid) for cid in rejected)}"
            )

    async def _guard(
        self,
        interval: TimeInterval,
        computer_ids: list[int],
        exclude_group_id: Optional[str] = None,
    ) -> None:
        await resource_registry.lock_computers(self.db, computer_ids)

        blocking = await blackout_registry.list_blocking(self.db, interval, computer_ids)
        if blocking:
            blocked_ids = blackout_registry.blocked_computer_ids(blocking, computer_ids)
            labels = await resource_registry.labels_for(self.db, blocked_ids)
            logger.warning(
                "blackout_conflict",
                blackout_ids=[b.id for b in blocking],
                scopes=sorted({b.scope for b in blocking}),
                computers=labels,
            )
            raise BlackoutConflict(labels)

        conflicts = await reservation_store.find_conflicts(
            self.db, interval, computer_ids, exclude_group_id=exclude_group_id
        )
        if conflicts:
            labels = [row.computer.label if row.computer else str(row.computer_id) for row in conflicts]
            logger.warning(
                "booking_conflict",
                computers=sorted(set(labels)),
                conflicting_groups=sorted({row.group_id or row.id for row in conflicts}),
            )
            raise BookingConflict(labels)

    async def _notify(self, event: ChangeEvent) -> None:
        try:
            await self.notifier.publish(event)
        except Exception as e:
            # Runs after commit; nothing raised here may fail the operation
            record_notification(event.type, delivered=False)
            logger.error(
                "notification_delivery_failed",
                event_type=event.type,
                group_id=event.group_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        record_notification(event.type, delivered=True)

    @asynccontextmanager
    async def _operation(self, name: str):
        """Outcome metric and latency for one engine operation."""
        start_time = time.perf_counter()
        try:
            yield
        except SchedulerError as e:
            record_booking_attempt(name, _OUTCOMES.get(type(e), "error"))
            raise
        else:
            record_booking_attempt(name, "success")
        finally:
            booking_latency.labels(operation=name).observe(time.perf_counter() - start_time)

    @asynccontextmanager
    async def _atomic(
        self,
        interval: Optional[TimeInterval] = None,
        computer_ids: Sequence[int] = (),
        exclude_group_id: Optional[str] = None,
    ):
        """
        Commit on success, roll back on any failure. Partial groups are never visible.
        """
        try:
            yield
            await self.db.commit()
        except SchedulerError:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            if interval is not None and _is_overlap_violation(e):
                conflict = await self._conflict_after_violation(interval, computer_ids, exclude_group_id)
                raise conflict from e
            logger.error("reservation_transaction_failed", error=str(e.orig))
            raise StorageError() from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("reservation_transaction_failed", error=str(e))
            raise StorageError() from e

    async def _conflict_after_violation(
        self,
        interval: TimeInterval,
        computer_ids: Sequence[int],
        exclude_group_id: Optional[str] = None,
    ) -> BookingConflict:
        """Name the colliding computers once the constraint has rejected the write."""
        conflicts = await reservation_store.find_conflicts(
            self.db, interval, computer_ids, exclude_group_id=exclude_group_id
        )
        if conflicts:
            labels = [row.computer.label for row in conflicts if row.computer is not None]
        else:
            labels = await resource_registry.labels_for(self.db, computer_ids)
        logger.warning("booking_conflict", computers=sorted(set(labels)), source="constraint")
        return BookingConflict(labels)
