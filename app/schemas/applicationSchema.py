from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from app.constants.constants import ApplicationStatus
from app.schemas.commonSchema import naive_utc


class ApplicationCreate(BaseModel):
    client_id: str
    company: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    job_link: Optional[str] = None
    applied_date: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("applied_date")
    @classmethod
    def to_naive_utc(cls, value):
        return naive_utc(value)


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = None
    interview_date: Optional[datetime] = None
    meeting_link: Optional[str] = None

    @field_validator("interview_date")
    @classmethod
    def to_naive_utc(cls, value):
        return naive_utc(value)


class ApplicationOut(BaseModel):
    id: str
    client_id: str
    company: str
    role: str
    job_link: Optional[str]
    status: ApplicationStatus
    applied_date: Optional[datetime]
    interview_date: Optional[datetime]
    meeting_link: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
