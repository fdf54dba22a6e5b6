from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from app.constants.constants import MeetingStatus
from app.schemas.commonSchema import naive_utc


class InterviewCreate(BaseModel):
    client_id: str
    interview_type: str = Field(..., min_length=1)
    scheduled_date: datetime
    application_id: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None
    duration_minutes: int = Field(60, gt=0, le=480)
    timezone: Optional[str] = None
    interviewer_name: Optional[str] = None
    interviewer_email: Optional[EmailStr] = None
    meeting_link: Optional[str] = None
    admin_notes: Optional[str] = None

    @field_validator("scheduled_date")
    @classmethod
    def to_naive_utc(cls, value):
        return naive_utc(value)


class InterviewUpdate(BaseModel):
    interview_type: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    company: Optional[str] = None
    role: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0, le=480)
    timezone: Optional[str] = None
    interviewer_name: Optional[str] = None
    interviewer_email: Optional[EmailStr] = None
    meeting_link: Optional[str] = None
    admin_notes: Optional[str] = None
    status: Optional[MeetingStatus] = None

    @field_validator("scheduled_date")
    @classmethod
    def to_naive_utc(cls, value):
        return naive_utc(value)


class InterviewFeedback(BaseModel):
    outcome: str = Field(..., min_length=1)
    feedback: Optional[str] = None
    next_steps: Optional[str] = None


class InterviewOut(BaseModel):
    id: str
    client_id: str
    application_id: Optional[str]
    company: Optional[str]
    role: Optional[str]
    interview_type: str
    scheduled_date: Optional[datetime]
    duration_minutes: int
    timezone: Optional[str]
    interviewer_name: Optional[str]
    interviewer_email: Optional[str]
    meeting_link: Optional[str]
    status: MeetingStatus
    confirmed_by: Optional[str]
    confirmed_at: Optional[datetime]
    outcome: Optional[str]
    feedback: Optional[str]
    next_steps: Optional[str]
    admin_notes: Optional[str]
    history: List[Dict[str, Any]]
    created_at: datetime

    class Config:
        from_attributes = True
