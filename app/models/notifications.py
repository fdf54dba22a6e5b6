from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, JSON
from app.models.base import Base, TimestampMixin, generate_uuid


class Notification(Base, TimestampMixin):
    """Model for in-app notifications. Only the read flags ever change."""

    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=generate_uuid)
    # Leads without an account are addressed by email until they register
    user_id = Column(String, ForeignKey("registered_users.id"), nullable=True, index=True)
    recipient_email = Column(String, nullable=True, index=True)
    user_type = Column(String, nullable=False, default="client")  # client, admin

    type = Column(String, nullable=False)  # consultation_confirmed, profile_unlocked_by_admin, etc.
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    category = Column(String, nullable=False, default="system")
    priority = Column(String, nullable=False, default="medium")
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=False, default=dict)

    # Action link
    action_url = Column(String, nullable=True)
    action_text = Column(String, nullable=True)

    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
