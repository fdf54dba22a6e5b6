from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, Enum, JSON

from app.constants.constants import MeetingStatus
from app.models.base import Base, TimestampMixin, generate_uuid


class Interview(Base, TimestampMixin):
    """Interview coordinated by an admin on behalf of a client."""

    __tablename__ = "interviews"

    id = Column(String, primary_key=True, index=True, default=generate_uuid)
    client_id = Column(String, ForeignKey("registered_users.id"), nullable=False, index=True)
    application_id = Column(String, ForeignKey("applications.id"), nullable=True)
    company = Column(String, nullable=True)
    role = Column(String, nullable=True)
    interview_type = Column(String, nullable=False)  # phone, video, onsite, technical...

    scheduled_date = Column(DateTime, nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=60)
    timezone = Column(String, nullable=True)
    interviewer_name = Column(String, nullable=True)
    interviewer_email = Column(String, nullable=True)
    meeting_link = Column(String, nullable=True)

    status = Column(Enum(MeetingStatus), nullable=False, default=MeetingStatus.pending_confirmation, index=True)
    confirmed_by = Column(String, nullable=True)
    confirmed_at = Column(DateTime, nullable=True)

    outcome = Column(String, nullable=True)
    feedback = Column(Text, nullable=True)
    next_steps = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)
    history = Column(JSON, nullable=False, default=list)
    created_by = Column(String, nullable=True)
