from ticket_reserve.models.audit import AuditLog
from ticket_reserve.models.event import Event
from ticket_reserve.models.reservation import Reservation, KIND_GENERAL, KIND_INVITED
from ticket_reserve.models.survey import AppConfig, SurveyResponse, SURVEY_QUESTIONS_KEY
from ticket_reserve.models.user import ArchivedUser, User

__all__ = [
    "AuditLog",
    "Event",
    "Reservation", "KIND_GENERAL", "KIND_INVITED",
    "AppConfig", "SurveyResponse", "SURVEY_QUESTIONS_KEY",
    "ArchivedUser", "User",
]
