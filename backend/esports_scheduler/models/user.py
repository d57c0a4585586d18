"""
User model. Only identity and role live here; credentials are managed by
the sign-in provider.
"""

import uuid

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from esports_scheduler.db.base import Base, TimestampMixin

ROLE_ADMIN = "ADMIN"
ROLE_USER = "USER"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=ROLE_USER)

    reservations = relationship("Reservation", back_populates="created_by")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
