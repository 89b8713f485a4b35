"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from ticket_reserve.api.routes import account, events, reservations, surveys

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(events.router)
api_router.include_router(reservations.router)
api_router.include_router(reservations.tickets_router)
api_router.include_router(surveys.router)
api_router.include_router(account.router)
