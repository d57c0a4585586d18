"""
Reservation row: one computer, one team, one half-open interval.

Key design decisions:
- Rows created by the same booking request share a group_id; the group is the
  unit the engine creates, edits and deletes
- group_id is nullable only for rows written before grouping existed
- Composite index (computer_id, starts_at, ends_at) serves the conflict query
- Index on ends_at serves the retention purge
- On PostgreSQL the migration adds an exclusion constraint that forbids
  overlapping CONFIRMED rows per computer
"""

import uuid

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from esports_scheduler.db.base import Base, TimestampMixin

STATUS_CONFIRMED = "CONFIRMED"
STATUS_CANCELLED = "CANCELLED"


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(36), nullable=True, index=True)
    team_id = Column(String(64), ForeignKey("teams.id"), nullable=False, index=True)
    computer_id = Column(Integer, ForeignKey("computers.id"), nullable=False)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)
    created_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    status = Column(String(20), nullable=False, default=STATUS_CONFIRMED)

    team = relationship("Team", back_populates="reservations", lazy="joined")
    computer = relationship("Computer", back_populates="reservations", lazy="joined")
    created_by = relationship("User", back_populates="reservations", lazy="joined")

    __table_args__ = (
        CheckConstraint("starts_at < ends_at", name="check_reservation_interval"),
        CheckConstraint("status IN ('CONFIRMED', 'CANCELLED')", name="check_reservation_status"),
        Index("ix_reservations_computer_range", "computer_id", "starts_at", "ends_at"),
        Index("ix_reservations_ends_at", "ends_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, group={self.group_id}, computer={self.computer_id}, "
            f"{self.starts_at}..{self.ends_at})>"
        )
