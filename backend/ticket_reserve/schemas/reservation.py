"""
Pydantic schemas for reservation request/response validation.

Submissions are a tagged union on `kind`: a general reservation carries a
representative plus companions, an invited one carries named groups.
"""

from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class GeneralReservationIn(BaseModel):
    kind: Literal["general"] = "general"
    representative_name: str = Field("", max_length=255)
    companions: list[str] = Field(default_factory=list, max_length=100)


class ReservationGroupIn(BaseModel):
    group_name: str = Field("", max_length=255)
    companions: list[str] = Field(default_factory=list, max_length=100)
    # Echoed back by clients editing an existing group
    reservation_number: Optional[str] = Field(None, max_length=16)


class InvitedReservationIn(BaseModel):
    kind: Literal["invited"] = "invited"
    groups: list[ReservationGroupIn] = Field(default_factory=list, max_length=50)


# Routes parse this with Body(discriminator="kind")
ReservationSubmit = Union[GeneralReservationIn, InvitedReservationIn]


class ReservationGroupOut(BaseModel):
    group_name: str
    companions: list[str]
    reservation_number: str


class ReservationResponse(BaseModel):
    id: str
    event_id: str
    user_id: str
    kind: str
    total_count: int
    reservation_number: str
    representative_name: Optional[str] = None
    companions: Optional[list[str]] = None
    groups: Optional[list[ReservationGroupOut]] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TicketResponse(BaseModel):
    """A shareable ticket; `group` is set when a group-specific link was used."""

    reservation: ReservationResponse
    group: Optional[ReservationGroupOut] = None


class ReservationResult(BaseModel):
    reservation_id: str
    reservation_number: str
    kind: str
    total_count: int
    delta: int
    created: bool
    group_numbers: list[str] = Field(default_factory=list)


class CancelResponse(BaseModel):
    event_id: str
    cancelled: bool


class WithdrawalResult(BaseModel):
    user_id: str
    cancelled: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    profile_archived: bool = False
