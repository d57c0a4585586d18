"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from esports_scheduler.api.routes import reservations, reference, blackouts, admin

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(reservations.router)
api_router.include_router(reference.router)
api_router.include_router(blackouts.router)
api_router.include_router(admin.router)
