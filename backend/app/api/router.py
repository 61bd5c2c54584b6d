"""
Central API router that aggregates all route modules.

Every route under /api/v1 runs the expiry sweep first, so no handler ever
sees an active booking for a past date.
"""

from fastapi import APIRouter, Depends
from app.api.dependencies import sweep_stale_bookings
from app.api.routes import admin, bookings, reservations, seats

api_router = APIRouter(prefix="/api/v1", dependencies=[Depends(sweep_stale_bookings)])
api_router.include_router(seats.router)
api_router.include_router(reservations.router)
api_router.include_router(bookings.router)
api_router.include_router(admin.router)
