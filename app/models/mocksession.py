from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum, JSON

from app.constants.constants import MockSessionStatus, MockSessionType, PreparationLevel
from app.models.base import Base, TimestampMixin, generate_uuid


class MockSession(Base, TimestampMixin):
    """Practice interview booked by a client with an assigned coach."""

    __tablename__ = "mock_sessions"

    id = Column(String, primary_key=True, index=True, default=generate_uuid)
    user_id = Column(String, ForeignKey("registered_users.id"), nullable=False, index=True)
    session_type = Column(Enum(MockSessionType), nullable=False)
    scheduled_date = Column(DateTime, nullable=False)
    status = Column(Enum(MockSessionStatus), nullable=False, default=MockSessionStatus.scheduled, index=True)

    coach_name = Column(String, nullable=False)
    coach_title = Column(String, nullable=True)
    coach_experience = Column(String, nullable=True)
    coach_specialties = Column(JSON, nullable=False, default=list)
    meeting_link = Column(String, nullable=True)

    focus_areas = Column(JSON, nullable=False, default=list)
    preparation_level = Column(Enum(PreparationLevel), nullable=False, default=PreparationLevel.intermediate)
    specific_company = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    feedback = Column(JSON, nullable=True)
    completed_at = Column(DateTime, nullable=True)
