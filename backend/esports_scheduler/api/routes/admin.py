"""
Retention purge, triggered by a scheduler (cron) holding the shared secret.
"""

import secrets
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from esports_scheduler.api.deps import get_booking_engine
from esports_scheduler.core.config import get_settings
from esports_scheduler.schemas.purge import PurgeResponse
from esports_scheduler.services.booking_engine import BookingEngine
from esports_scheduler.services.interval import start_of_current_month

settings = get_settings()
router = APIRouter(prefix="/admin", tags=["Admin"])


def verify_cron_secret(
    secret: Optional[str] = Query(None),
    x_cron_secret: Optional[str] = Header(None),
) -> None:
    """Accepts the secret as ?secret= or X-Cron-Secret. No configured secret means no access."""
    provided = secret if secret is not None else x_cron_secret
    expected = settings.CRON_SECRET
    if not expected or provided is None or not secrets.compare_digest(provided, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


@router.api_route(
    "/purge-reservations",
    methods=["GET", "POST"],
    response_model=PurgeResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_cron_secret)],
)
async def purge_reservations(
    dry_run: bool = Query(False, alias="dryRun"),
    cutoff: Optional[datetime] = Query(None),
    engine: BookingEngine = Depends(get_booking_engine),
):
    """
    Delete reservations that ended before the cutoff (default: start of the
    current UTC month). dryRun=1 only counts them.
    """
    result = await engine.purge(cutoff or start_of_current_month(), dry_run=dry_run)
    if result.dry_run:
        return PurgeResponse(dry_run=True, cutoff=result.cutoff, would_delete=result.count)
    return PurgeResponse(dry_run=False, cutoff=result.cutoff, deleted=result.count)
