from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from app.constants.constants import (
    ApplicationVolumePreference,
    OnboardingExecutionStatus,
    RemoteWorkPreference,
)


class OnboardingQuestionnaire(BaseModel):
    """The 20 onboarding answers, grouped as in the client questionnaire."""

    # Role targeting
    target_job_titles: List[str] = Field(..., min_length=1)
    target_industries: List[str] = Field(..., min_length=1)
    target_company_sizes: List[str] = Field(default_factory=list)
    target_locations: List[str] = Field(..., min_length=1)
    remote_work_preference: RemoteWorkPreference = RemoteWorkPreference.hybrid

    # Compensation
    current_salary_range: Optional[str] = None
    target_salary_range: str = Field(..., min_length=1)
    salary_negotiation_comfort: int = Field(5, ge=1, le=10)

    # Experience
    years_of_experience: int = Field(..., ge=0, le=60)
    key_technical_skills: List[str] = Field(..., min_length=1)
    soft_skills_strengths: List[str] = Field(default_factory=list)
    certifications_licenses: List[str] = Field(default_factory=list)

    # Strategy
    job_search_timeline: str = Field(..., min_length=1)
    application_volume_preference: ApplicationVolumePreference = ApplicationVolumePreference.quality_focused
    networking_comfort_level: int = Field(5, ge=1, le=10)
    interview_confidence_level: int = Field(5, ge=1, le=10)

    # Goals
    career_goals_short_term: str = Field(..., min_length=1)
    career_goals_long_term: Optional[str] = None
    biggest_career_challenges: List[str] = Field(..., min_length=1)
    support_areas_needed: List[str] = Field(..., min_length=1)

    @field_validator(
        "target_job_titles", "target_industries", "target_company_sizes", "target_locations",
        "key_technical_skills", "soft_skills_strengths", "certifications_licenses",
        "biggest_career_challenges", "support_areas_needed",
        mode="before",
    )
    @classmethod
    def split_and_strip(cls, value):
        """Accept comma-separated strings as well as lists; drop blanks."""
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, list):
            return [str(item).strip() for item in value if str(item).strip()]
        return value


class ApproveOnboardingRequest(BaseModel):
    admin_notes: Optional[str] = None


class OnboardingOut(OnboardingQuestionnaire):
    id: str
    user_id: str
    execution_status: OnboardingExecutionStatus
    completed_at: Optional[datetime]
    approved_by: Optional[str]
    approved_at: Optional[datetime]
    admin_notes: Optional[str]

    class Config:
        from_attributes = True
