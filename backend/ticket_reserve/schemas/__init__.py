from ticket_reserve.schemas.event import EventResponse, EventDetailResponse, EventListResponse, ReservationStatus
from ticket_reserve.schemas.reservation import (
    GeneralReservationIn, InvitedReservationIn, ReservationGroupIn, ReservationSubmit,
    ReservationResponse, ReservationResult, TicketResponse, CancelResponse, WithdrawalResult,
)
from ticket_reserve.schemas.survey import SurveyQuestion, SurveySubmit, SurveyResult

__all__ = [
    "EventResponse", "EventDetailResponse", "EventListResponse", "ReservationStatus",
    "GeneralReservationIn", "InvitedReservationIn", "ReservationGroupIn", "ReservationSubmit",
    "ReservationResponse", "ReservationResult", "TicketResponse", "CancelResponse", "WithdrawalResult",
    "SurveyQuestion", "SurveySubmit", "SurveyResult",
]
