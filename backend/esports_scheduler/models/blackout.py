"""
Blackout window: a period during which booking is disallowed, either for the
whole facility (scope ALL) or for a single computer (scope COMPUTER).
"""

import uuid

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from esports_scheduler.db.base import Base, TimestampMixin

SCOPE_ALL = "ALL"
SCOPE_COMPUTER = "COMPUTER"


class Blackout(Base, TimestampMixin):
    __tablename__ = "blackouts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)
    scope = Column(String(20), nullable=False, default=SCOPE_ALL)
    computer_id = Column(Integer, ForeignKey("computers.id"), nullable=True)
    reason = Column(String(255), nullable=True)

    computer = relationship("Computer")

    __table_args__ = (
        CheckConstraint("starts_at < ends_at", name="check_blackout_interval"),
        CheckConstraint("scope IN ('ALL', 'COMPUTER')", name="check_blackout_scope"),
        # computer_id is present iff the blackout targets a single computer
        CheckConstraint(
            "(scope = 'COMPUTER' AND computer_id IS NOT NULL) OR (scope = 'ALL' AND computer_id IS NULL)",
            name="check_blackout_scope_computer",
        ),
        Index("ix_blackouts_range", "starts_at", "ends_at"),
    )

    def __repr__(self) -> str:
        return f"<Blackout(id={self.id}, scope={self.scope}, {self.starts_at}..{self.ends_at})>"
