"""Consultation requests submitted from the public site."""

from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, Numeric, Enum, JSON

from app.constants.constants import AdminStatus, ConsultationStatus, PipelineStatus
from app.models.base import Base, TimestampMixin, generate_uuid


class ConsultationRequest(Base, TimestampMixin):
    __tablename__ = "consultation_requests"

    id = Column(String, primary_key=True, index=True, default=generate_uuid)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    message = Column(Text, nullable=True)
    preferred_slots = Column(JSON, nullable=False, default=list)  # [{"date": ..., "time": ...}]

    status = Column(Enum(ConsultationStatus), nullable=False, default=ConsultationStatus.pending, index=True)
    admin_status = Column(Enum(AdminStatus), nullable=False, default=AdminStatus.pending, index=True)
    pipeline_status = Column(Enum(PipelineStatus), nullable=False, default=PipelineStatus.lead)
    admin_notes = Column(Text, nullable=True)

    # Confirmation
    confirmed_slot = Column(JSON, nullable=True)
    confirmed_time = Column(DateTime, nullable=True)
    meeting_link = Column(String, nullable=True)
    confirmed_by = Column(String, nullable=True)
    confirmed_at = Column(DateTime, nullable=True)

    # Gatekeeper audit
    reschedule_reason = Column(Text, nullable=True)
    rescheduled_by = Column(String, nullable=True)
    rescheduled_at = Column(DateTime, nullable=True)
    waitlist_reason = Column(Text, nullable=True)
    waitlisted_by = Column(String, nullable=True)
    waitlisted_at = Column(DateTime, nullable=True)
    new_times_submitted_at = Column(DateTime, nullable=True)

    # Pipeline audit
    reviewed_by = Column(String, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejected_by = Column(String, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    scheduled_at = Column(DateTime, nullable=True)

    # Payment
    payment_amount = Column(Numeric(10, 2), nullable=True)
    payment_method = Column(String, nullable=True)
    payment_reference = Column(String, nullable=True)
    package_tier = Column(Integer, nullable=True)
    payment_verified_by = Column(String, nullable=True)
    payment_verified_at = Column(DateTime, nullable=True)

    # Registration linkage
    registration_token = Column(Text, nullable=True)
    token_expires_at = Column(DateTime, nullable=True)
    token_used = Column(Boolean, default=False, nullable=False)
    registered_user_id = Column(String, nullable=True)
    registered_at = Column(DateTime, nullable=True)
