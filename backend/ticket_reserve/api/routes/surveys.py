"""
Post-event survey endpoints. Authentication is optional: signed-in users
update a single response per event, anonymous visitors add a new one.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_reserve.core.security import get_optional_user_id
from ticket_reserve.db.session import get_db
from ticket_reserve.schemas.survey import SurveyQuestion, SurveyResult, SurveySubmit
from ticket_reserve.services.survey_service import load_questions, submit_survey

router = APIRouter(prefix="/surveys", tags=["Surveys"])


@router.get("/questions", response_model=list[SurveyQuestion])
async def list_questions(db: AsyncSession = Depends(get_db)):
    return await load_questions(db)


@router.post("/{event_id}", response_model=SurveyResult, status_code=status.HTTP_201_CREATED)
async def submit_survey_endpoint(
    event_id: str,
    payload: SurveySubmit,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await submit_survey(db, event_id, user_id, payload.answers)
