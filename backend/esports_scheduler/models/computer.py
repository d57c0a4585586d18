"""
Bookable computer.

Deactivating a computer excludes it from new bookings while its reservation
history stays in place.
"""

from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship

from esports_scheduler.db.base import Base, TimestampMixin


class Computer(Base, TimestampMixin):
    __tablename__ = "computers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    label = Column(String(64), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    reservations = relationship("Reservation", back_populates="computer")

    def __repr__(self) -> str:
        return f"<Computer(id={self.id}, label={self.label}, active={self.is_active})>"
