"""
Pydantic schemas for event-related responses.
Events are maintained by administrators; this API only reads them.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class EventResponse(BaseModel):
    id: str
    title: str
    date: str
    venue: Optional[str]
    notes: Optional[str] = None
    ticket_stock: int
    total_reserved: int
    is_accept_reserve: bool
    accept_start_date: Optional[str]
    accept_end_date: Optional[str]
    max_companions: int
    created_at: datetime

    model_config = {"from_attributes": True}


class ReservationStatus(BaseModel):
    is_in_period: bool
    is_sold_out: bool
    is_low_stock: bool
    remaining: Optional[int]


class EventDetailResponse(EventResponse):
    status: ReservationStatus


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False
