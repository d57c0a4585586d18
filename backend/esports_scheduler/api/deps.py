"""
Shared route dependencies.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from esports_scheduler.db.session import get_db
from esports_scheduler.services.booking_engine import BookingEngine
from esports_scheduler.services.interfaces.notifier import ChangeNotifier
from esports_scheduler.services.notifier_factory import get_notifier


def get_booking_engine(
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> BookingEngine:
    return BookingEngine(db, notifier)
