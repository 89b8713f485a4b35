"""
Post-event survey submissions.

Signed-in users have one response per event, keyed like reservations, that
later submissions merge into. Anonymous submissions always create a new row.
"""

import uuid
from typing import Any, Optional, Sequence

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_reserve.core.exceptions import ValidationError
from ticket_reserve.core.logging import get_logger
from ticket_reserve.core.metrics import record_survey_submission
from ticket_reserve.db.base import utcnow
from ticket_reserve.db.transaction import run_transaction
from ticket_reserve.models.survey import AppConfig, SurveyResponse, SURVEY_QUESTIONS_KEY
from ticket_reserve.schemas.survey import SurveyQuestion, SurveyResult
from ticket_reserve.services import audit_service
from ticket_reserve.services.event_service import get_event
from ticket_reserve.services.identity import reservation_key

logger = get_logger(__name__)

ACTION_SURVEY = "survey.submit"


async def load_questions(db: AsyncSession) -> list[SurveyQuestion]:
    config = await db.get(AppConfig, SURVEY_QUESTIONS_KEY)
    if config is None:
        return []
    return [SurveyQuestion.model_validate(q) for q in config.value or []]


def is_answered(question: SurveyQuestion, value: Any) -> bool:
    if question.type == "rating":
        return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0
    if question.type == "boolean":
        return value is True
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, dict)):
        return len(value) > 0
    return True


def validate_answers(questions: Sequence[SurveyQuestion], answers: dict[str, Any]) -> None:
    """Raise ValidationError naming the first required question left unanswered."""
    for question in questions:
        if question.required and not is_answered(question, answers.get(question.id)):
            raise ValidationError(f"Please answer \"{question.label}\"")


async def _upsert_response(
    db: AsyncSession, response_id: str, event_id: str, user_id: str, answers: dict[str, Any]
) -> bool:
    """Transaction body: merge answers into the user's response. Returns True if created."""
    existing = await db.get(SurveyResponse, response_id, populate_existing=True)
    if existing is None:
        await db.execute(
            insert(SurveyResponse).values(
                id=response_id, event_id=event_id, user_id=user_id, answers=dict(answers)
            )
        )
        return True

    # created_at is left untouched
    existing.answers = {**(existing.answers or {}), **answers}
    existing.updated_at = utcnow()
    await db.flush()
    return False


async def _insert_anonymous(db: AsyncSession, response_id: str, event_id: str, answers: dict[str, Any]) -> bool:
    await db.execute(
        insert(SurveyResponse).values(id=response_id, event_id=event_id, user_id=None, answers=dict(answers))
    )
    return True


async def submit_survey(
    db: AsyncSession,
    event_id: str,
    user_id: Optional[str],
    answers: dict[str, Any],
    questions: Optional[Sequence[SurveyQuestion]] = None,
) -> SurveyResult:
    """
    Store a survey response for an event.

    Raises:
        NotFoundError: the event does not exist.
        ValidationError: a required question is unanswered (nothing is written).
    """
    response_id = reservation_key(event_id, user_id) if user_id else uuid.uuid4().hex

    try:
        await get_event(db, event_id)
        if questions is None:
            questions = await load_questions(db)
        validate_answers(questions, answers)

        if user_id:
            created = await run_transaction(
                db,
                lambda session: _upsert_response(session, response_id, event_id, user_id, answers),
                operation=ACTION_SURVEY,
            )
        else:
            created = await run_transaction(
                db,
                lambda session: _insert_anonymous(session, response_id, event_id, answers),
                operation=ACTION_SURVEY,
            )
    except Exception as e:
        logger.warning("survey_rejected", response_id=response_id, event_id=event_id, error=str(e))
        await audit_service.record_audit(
            db, response_id, ACTION_SURVEY, audit_service.STATUS_ERROR,
            error_detail=audit_service.error_detail(e), user_id=user_id,
        )
        raise

    record_survey_submission(anonymous=user_id is None)
    logger.info(
        "survey_submitted",
        response_id=response_id,
        event_id=event_id,
        anonymous=user_id is None,
        created=created,
    )
    await audit_service.record_audit(db, response_id, ACTION_SURVEY, user_id=user_id)
    return SurveyResult(
        response_id=response_id,
        event_id=event_id,
        anonymous=user_id is None,
        created=created,
    )
