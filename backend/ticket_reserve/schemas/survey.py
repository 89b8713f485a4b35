"""
Pydantic schemas for post-event surveys.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class SurveyQuestion(BaseModel):
    id: str
    label: str
    type: Literal["rating", "boolean", "choice", "text"] = "text"
    required: bool = False


class SurveySubmit(BaseModel):
    answers: dict[str, Any] = Field(default_factory=dict)


class SurveyResult(BaseModel):
    response_id: str
    event_id: str
    anonymous: bool
    created: bool
