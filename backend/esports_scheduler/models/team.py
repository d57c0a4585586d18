"""
Team reference data. Ids are stable slugs (e.g. team-valorant-a) so seeding is idempotent.
"""

from sqlalchemy import Column, String, Index
from sqlalchemy.orm import relationship

from esports_scheduler.db.base import Base, TimestampMixin


class Team(Base, TimestampMixin):
    __tablename__ = "teams"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    game_title = Column(String(255), nullable=False)

    reservations = relationship("Reservation", back_populates="team")

    __table_args__ = (
        Index("ix_teams_game_name", "game_title", "name"),
    )

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name={self.name})>"
