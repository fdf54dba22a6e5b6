from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field, field_validator

from app.constants.constants import MockSessionStatus, MockSessionType, PreparationLevel
from app.schemas.commonSchema import naive_utc


def _as_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


class MockSessionCreate(BaseModel):
    session_type: MockSessionType
    preferred_date: datetime
    focus_areas: List[str] = Field(..., min_length=1)
    preparation_level: PreparationLevel = PreparationLevel.intermediate
    specific_company: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("preferred_date")
    @classmethod
    def to_naive_utc(cls, value):
        return naive_utc(value)


class MockSessionUpdate(BaseModel):
    scheduled_date: Optional[datetime] = None
    status: Optional[MockSessionStatus] = None
    notes: Optional[str] = None

    @field_validator("scheduled_date")
    @classmethod
    def to_naive_utc(cls, value):
        return naive_utc(value)


class MockSessionFeedback(BaseModel):
    overall_rating: int = Field(..., ge=1, le=5)
    technical_skills: Optional[int] = Field(None, ge=1, le=5)
    communication: Optional[int] = Field(None, ge=1, le=5)
    problem_solving: Optional[int] = Field(None, ge=1, le=5)
    strengths: Union[str, List[str]]
    areas_for_improvement: Union[str, List[str]]
    recommendations: Union[str, List[str], None] = None
    next_session_suggestions: Optional[str] = None

    @field_validator("strengths", "areas_for_improvement", "recommendations")
    @classmethod
    def to_list(cls, value):
        return _as_list(value)

    @field_validator("strengths", "areas_for_improvement")
    @classmethod
    def not_empty(cls, value):
        if not [item for item in value if item and item.strip()]:
            raise ValueError("At least one entry is required")
        return value


class MockSessionOut(BaseModel):
    id: str
    user_id: str
    session_type: MockSessionType
    scheduled_date: datetime
    status: MockSessionStatus
    coach_name: str
    coach_title: Optional[str]
    coach_experience: Optional[str]
    coach_specialties: List[str]
    meeting_link: Optional[str]
    focus_areas: List[str]
    preparation_level: PreparationLevel
    specific_company: Optional[str]
    notes: Optional[str]
    feedback: Optional[Dict[str, Any]]
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
