"""Strategy calls requested by onboarded clients."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum, JSON

from app.constants.constants import MeetingStatus
from app.models.base import Base, TimestampMixin, generate_uuid


class StrategyCall(Base, TimestampMixin):
    __tablename__ = "strategy_calls"

    id = Column(String, primary_key=True, index=True, default=generate_uuid)
    user_id = Column(String, ForeignKey("registered_users.id"), nullable=False, index=True)
    preferred_slots = Column(JSON, nullable=False, default=list)
    timezone = Column(String, nullable=True)
    preparation_notes = Column(Text, nullable=True)
    specific_topics = Column(JSON, nullable=False, default=list)
    urgency_level = Column(String, nullable=False, default="normal")

    status = Column(Enum(MeetingStatus), nullable=False, default=MeetingStatus.pending_confirmation, index=True)
    admin_notes = Column(Text, nullable=True)

    confirmed_slot = Column(JSON, nullable=True)
    confirmed_time = Column(DateTime, nullable=True)
    meeting_link = Column(String, nullable=True)
    confirmed_by = Column(String, nullable=True)
    confirmed_at = Column(DateTime, nullable=True)

    reschedule_reason = Column(Text, nullable=True)
    rescheduled_by = Column(String, nullable=True)
    rescheduled_at = Column(DateTime, nullable=True)
    new_times_submitted_at = Column(DateTime, nullable=True)

    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
