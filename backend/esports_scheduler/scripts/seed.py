"""
Seed reference data: computers PC-01..PC-15, A/B teams per game, admin users.

Idempotent; existing rows are left untouched.

    python -m esports_scheduler.scripts.seed
"""

import asyncio
import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from esports_scheduler.core.logging import setup_logging, get_logger
from esports_scheduler.db.session import AsyncSessionLocal, engine
from esports_scheduler.models.computer import Computer
from esports_scheduler.models.team import Team
from esports_scheduler.models.user import User, ROLE_ADMIN

logger = get_logger(__name__)

COMPUTER_COUNT = 15
GAMES = ["Valorant", "League of Legends", "Rocket League", "Overwatch", "CS2"]
TEAM_LETTERS = ["A", "B"]
ADMINS = [
    ("valadmin@udemesports", "Valorant"),
    ("loladmin@udemesports", "League of Legends"),
    ("overwatchadmin@udemesports", "Overwatch"),
    ("rladmin@udemesports", "Rocket League"),
    ("president@udemesports", "President"),
    ("scheduler@udemesports", "Scheduler"),
]


def computer_labels(count: int = COMPUTER_COUNT) -> list[str]:
    return [f"PC-{i:02d}" for i in range(1, count + 1)]


def team_id(game: str, letter: str) -> str:
    slug = re.sub(r"\s+", "-", game.lower())
    return f"team-{slug}-{letter.lower()}"


def team_rows() -> list[dict]:
    return [
        {"id": team_id(game, letter), "name": f"{game} {letter}", "game_title": game}
        for game in GAMES
        for letter in TEAM_LETTERS
    ]


async def seed(db: AsyncSession) -> dict:
    created = {"computers": 0, "teams": 0, "users": 0}

    existing_labels = set((await db.execute(select(Computer.label))).scalars().all())
    for label in computer_labels():
        if label not in existing_labels:
            db.add(Computer(label=label, is_active=True))
            created["computers"] += 1

    existing_teams = set((await db.execute(select(Team.id))).scalars().all())
    for row in team_rows():
        if row["id"] not in existing_teams:
            db.add(Team(**row))
            created["teams"] += 1

    existing_emails = set((await db.execute(select(User.email))).scalars().all())
    for email, name in ADMINS:
        if email not in existing_emails:
            db.add(User(email=email, name=name, role=ROLE_ADMIN))
            created["users"] += 1

    await db.commit()
    return created


async def main() -> None:
    setup_logging()
    async with AsyncSessionLocal() as db:
        created = await seed(db)
    await engine.dispose()
    logger.info("seed_complete", **created)


if __name__ == "__main__":
    asyncio.run(main())
