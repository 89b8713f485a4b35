"""
Tests for post-event survey submission.
"""

import pytest
from sqlalchemy import func, select

from ticket_reserve.core.exceptions import NotFoundError, ValidationError
from ticket_reserve.models import SurveyResponse
from ticket_reserve.schemas.survey import SurveyQuestion
from ticket_reserve.services.survey_service import is_answered, load_questions, submit_survey

QUESTIONS = [
    {"id": "q1", "label": "How was the show?", "type": "rating", "required": True},
    {"id": "q2", "label": "Would you come again?", "type": "boolean", "required": True},
    {"id": "q3", "label": "Comments", "type": "text", "required": False},
]


async def count_responses(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(SurveyResponse))).scalar()


@pytest.mark.parametrize(
    "kind, value, answered",
    [
        ("rating", 0, False),
        ("rating", 4, True),
        ("rating", True, False),
        ("boolean", False, False),
        ("boolean", True, True),
        ("text", "   ", False),
        ("text", "great", True),
        ("choice", None, False),
        ("choice", ["a"], True),
    ],
)
def test_is_answered(kind, value, answered):
    question = SurveyQuestion(id="q", label="Q", type=kind, required=True)
    assert is_answered(question, value) is answered


@pytest.mark.asyncio
async def test_questions_loaded_from_config(db_session, set_survey_questions):
    assert await load_questions(db_session) == []

    await set_survey_questions(QUESTIONS)

    questions = await load_questions(db_session)
    assert [q.id for q in questions] == ["q1", "q2", "q3"]
    assert questions[0].type == "rating"


@pytest.mark.asyncio
async def test_missing_required_answer_writes_nothing(session_factory, make_event, set_survey_questions):
    await make_event()
    await set_survey_questions(QUESTIONS)

    async with session_factory() as session:
        with pytest.raises(ValidationError, match="Would you come again"):
            await submit_survey(session, "live-1", "u1", {"q1": 5, "q2": False})

    assert await count_responses(session_factory) == 0


@pytest.mark.asyncio
async def test_signed_in_resubmission_merges_answers(session_factory, make_event, set_survey_questions):
    await make_event()
    await set_survey_questions(QUESTIONS)

    async with session_factory() as session:
        first = await submit_survey(session, "live-1", "u1", {"q1": 3, "q2": True, "q3": "fun"})
    async with session_factory() as session:
        original = await session.get(SurveyResponse, "live-1_u1")
        created_at = original.created_at

    async with session_factory() as session:
        second = await submit_survey(session, "live-1", "u1", {"q1": 5, "q2": True})

    assert first.created is True
    assert second.created is False
    assert second.response_id == "live-1_u1"
    assert await count_responses(session_factory) == 1

    async with session_factory() as session:
        response = await session.get(SurveyResponse, "live-1_u1")
    assert response.answers == {"q1": 5, "q2": True, "q3": "fun"}
    assert response.created_at == created_at


@pytest.mark.asyncio
async def test_anonymous_submissions_always_insert(session_factory, make_event):
    await make_event()

    async with session_factory() as session:
        first = await submit_survey(session, "live-1", None, {"q3": "hi"}, questions=[])
    async with session_factory() as session:
        second = await submit_survey(session, "live-1", None, {"q3": "hi"}, questions=[])

    assert first.anonymous and second.anonymous
    assert first.response_id != second.response_id
    assert await count_responses(session_factory) == 2


@pytest.mark.asyncio
async def test_survey_for_unknown_event(db_session):
    with pytest.raises(NotFoundError):
        await submit_survey(db_session, "missing", "u1", {}, questions=[])
