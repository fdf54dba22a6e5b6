from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum

from app.constants.constants import ApplicationStatus
from app.models.base import Base, TimestampMixin, generate_uuid


class Application(Base, TimestampMixin):
    """Job application tracked for a client in the Application Tracker."""

    __tablename__ = "applications"

    id = Column(String, primary_key=True, index=True, default=generate_uuid)
    client_id = Column(String, ForeignKey("registered_users.id"), nullable=False, index=True)
    company = Column(String, nullable=False)
    role = Column(String, nullable=False)
    job_link = Column(String, nullable=True)
    status = Column(Enum(ApplicationStatus), nullable=False, default=ApplicationStatus.applied, index=True)
    applied_date = Column(DateTime, nullable=True)
    interview_date = Column(DateTime, nullable=True)
    meeting_link = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(String, nullable=True)
