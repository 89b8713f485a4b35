"""
Post-event survey responses and the externally managed configuration store.

The shape of `answers` is defined by the survey question list kept in
`app_configs`; this service stores it without interpreting it.
"""

from sqlalchemy import Column, String, ForeignKey, JSON

from ticket_reserve.db.base import Base, TimestampMixin

SURVEY_QUESTIONS_KEY = "survey_questions"


class SurveyResponse(Base, TimestampMixin):
    __tablename__ = "survey_responses"

    # f"{event_id}_{user_id}" when authenticated, random hex otherwise
    id = Column(String(200), primary_key=True)
    event_id = Column(String(64), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(128), nullable=True, index=True)
    answers = Column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<SurveyResponse(id={self.id}, event={self.event_id})>"


class AppConfig(Base, TimestampMixin):
    __tablename__ = "app_configs"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=False)
