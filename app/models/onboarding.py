"""20-question onboarding record for concierge clients."""

from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, Enum, JSON

from app.constants.constants import OnboardingExecutionStatus
from app.models.base import Base, TimestampMixin, generate_uuid


class OnboardingRecord(Base, TimestampMixin):
    __tablename__ = "client_onboarding"

    id = Column(String, primary_key=True, index=True, default=generate_uuid)
    user_id = Column(String, ForeignKey("registered_users.id"), nullable=False, unique=True)

    # Role targeting
    target_job_titles = Column(JSON, nullable=False, default=list)
    target_industries = Column(JSON, nullable=False, default=list)
    target_company_sizes = Column(JSON, nullable=False, default=list)
    target_locations = Column(JSON, nullable=False, default=list)
    remote_work_preference = Column(String, nullable=False, default="hybrid")

    # Compensation
    current_salary_range = Column(String, nullable=True)
    target_salary_range = Column(String, nullable=False)
    salary_negotiation_comfort = Column(Integer, nullable=False, default=5)

    # Experience
    years_of_experience = Column(Integer, nullable=False)
    key_technical_skills = Column(JSON, nullable=False, default=list)
    soft_skills_strengths = Column(JSON, nullable=False, default=list)
    certifications_licenses = Column(JSON, nullable=False, default=list)

    # Strategy
    job_search_timeline = Column(String, nullable=False)
    application_volume_preference = Column(String, nullable=False, default="quality_focused")
    networking_comfort_level = Column(Integer, nullable=False, default=5)
    interview_confidence_level = Column(Integer, nullable=False, default=5)

    # Goals
    career_goals_short_term = Column(Text, nullable=False)
    career_goals_long_term = Column(Text, nullable=True)
    biggest_career_challenges = Column(JSON, nullable=False, default=list)
    support_areas_needed = Column(JSON, nullable=False, default=list)

    execution_status = Column(
        Enum(OnboardingExecutionStatus),
        nullable=False,
        default=OnboardingExecutionStatus.pending_approval,
        index=True,
    )
    completed_at = Column(DateTime, nullable=True)
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    admin_notes = Column(Text, nullable=True)
