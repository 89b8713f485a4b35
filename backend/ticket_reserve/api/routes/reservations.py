"""
Reservation endpoints. One reservation per user per event, so the event id
in the path is enough to address the caller's own reservation.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_reserve.core.security import get_current_user_id
from ticket_reserve.db.session import get_db
from ticket_reserve.schemas.reservation import (
    CancelResponse,
    ReservationGroupOut,
    ReservationResponse,
    ReservationResult,
    ReservationSubmit,
    TicketResponse,
)
from ticket_reserve.services.cache_service import invalidate_event_cache
from ticket_reserve.services.cancellation_service import cancel_reservation
from ticket_reserve.services.reservation_service import (
    get_reservation,
    get_ticket,
    list_user_reservations,
    submit_reservation,
)

router = APIRouter(prefix="/reservations", tags=["Reservations"])
tickets_router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.put("/{event_id}", response_model=ReservationResult)
async def submit_reservation_endpoint(
    event_id: str,
    payload: ReservationSubmit = Body(..., discriminator="kind"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Create or update the caller's reservation.

    Only the change in headcount is charged against the event. Fails with 409
    when the event cannot fit the additional seats.
    """
    result = await submit_reservation(db, event_id, user_id, payload)
    await invalidate_event_cache()
    return result


@router.delete("/{event_id}", response_model=CancelResponse)
async def cancel_reservation_endpoint(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel the caller's reservation; cancelling twice is not an error."""
    cancelled = await cancel_reservation(db, event_id, user_id)
    if cancelled:
        await invalidate_event_cache()
    return CancelResponse(event_id=event_id, cancelled=cancelled)


@router.get("/", response_model=list[ReservationResponse])
async def list_my_reservations(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await list_user_reservations(db, user_id)


@router.get("/{event_id}", response_model=ReservationResponse)
async def get_my_reservation(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await get_reservation(db, event_id, user_id)


@tickets_router.get("/{reservation_id}", response_model=TicketResponse)
async def get_ticket_endpoint(
    reservation_id: str,
    g: Optional[str] = Query(None, description="Invited group number from a shared link, e.g. 4602-2 or 2"),
    db: AsyncSession = Depends(get_db),
):
    """Shareable ticket view; the reservation key acts as the link secret."""
    reservation, group = await get_ticket(db, reservation_id, g)
    return TicketResponse(
        reservation=ReservationResponse.model_validate(reservation),
        group=ReservationGroupOut(**group) if group else None,
    )
