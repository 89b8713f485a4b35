"""
Event reads and reservation-window / stock status.

Events are created and edited by administrators elsewhere; the only columns
this service ever changes are `total_reserved` and `version`, and only inside
the reservation and cancellation transactions.
"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_reserve.core.config import get_settings
from ticket_reserve.core.exceptions import NotFoundError
from ticket_reserve.models.event import Event
from ticket_reserve.schemas.event import ReservationStatus

LOW_STOCK_RATIO = 0.2


def today_str(now: Optional[datetime] = None) -> str:
    """Today's date as `YYYY.MM.DD` in the site's timezone."""
    settings = get_settings()
    now = now or datetime.now(ZoneInfo(settings.TIMEZONE))
    return now.strftime("%Y.%m.%d")


async def get_event(db: AsyncSession, event_id: str, *, fresh: bool = False) -> Event:
    """Get a single event by ID. `fresh` forces a re-read of a cached instance."""
    event = await db.get(Event, event_id, populate_existing=fresh)
    if not event:
        raise NotFoundError(f"Event {event_id} not found")
    return event


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    upcoming_only: bool = True,
    today: Optional[str] = None,
) -> tuple[list[Event], int]:
    """List events by date with pagination. Uses the ix_events_date index."""
    query = select(Event)

    if upcoming_only:
        query = query.where(Event.date >= (today or today_str()))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    events_query = (
        query
        .order_by(Event.date.asc(), Event.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total


def is_in_reservation_window(event: Event, today: str) -> bool:
    if not event.is_accept_reserve:
        return False
    if event.accept_start_date and today < event.accept_start_date:
        return False
    if event.accept_end_date and today > event.accept_end_date:
        return False
    return True


def remaining_seats(event: Event) -> Optional[int]:
    """Seats left, or None when the event has no seat limit."""
    if event.ticket_stock <= 0:
        return None
    return max(event.ticket_stock - event.total_reserved, 0)


def reservation_status(event: Event, today: Optional[str] = None) -> ReservationStatus:
    today = today or today_str()
    remaining = remaining_seats(event)
    sold_out = remaining is not None and remaining == 0
    low_stock = (
        not sold_out
        and remaining is not None
        and remaining <= event.ticket_stock * LOW_STOCK_RATIO
    )
    return ReservationStatus(
        is_in_period=is_in_reservation_window(event, today),
        is_sold_out=sold_out,
        is_low_stock=low_stock,
        remaining=remaining,
    )
