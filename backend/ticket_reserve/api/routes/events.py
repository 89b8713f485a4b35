"""
Event endpoints. List pages are cached in Redis; single events are not,
since they carry live seat counts.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_reserve.db.session import get_db
from ticket_reserve.schemas.event import EventDetailResponse, EventListResponse, EventResponse
from ticket_reserve.services.cache_service import get_cached_events, set_cached_events
from ticket_reserve.services.event_service import get_event, list_events, reservation_status, today_str
from ticket_reserve.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    upcoming_only: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    """List events by date, upcoming only by default."""
    today = today_str()
    cached = await get_cached_events(today, page, page_size, upcoming_only)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await list_events(db, page, page_size, upcoming_only, today=today)

    response_data = {
        "events": [EventResponse.model_validate(e).model_dump() for e in events],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_events(today, page, page_size, upcoming_only, response_data)

    return EventListResponse(**response_data)


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event_endpoint(event_id: str, db: AsyncSession = Depends(get_db)):
    """Single event with its reservation window and stock status."""
    event = await get_event(db, event_id, fresh=True)
    return EventDetailResponse(
        **EventResponse.model_validate(event).model_dump(),
        status=reservation_status(event),
    )
