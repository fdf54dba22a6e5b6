from sqlalchemy import Column, String, Text, Boolean, Enum

from app.constants.constants import ContactRequestStatus, ContactSource, NotificationPriority
from app.models.base import Base, TimestampMixin, generate_uuid


class ContactRequest(Base, TimestampMixin):
    """Message left through the public contact form."""

    __tablename__ = "contact_requests"

    id = Column(String, primary_key=True, index=True, default=generate_uuid)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    source = Column(Enum(ContactSource), nullable=False, default=ContactSource.contact_form)

    status = Column(Enum(ContactRequestStatus), nullable=False, default=ContactRequestStatus.new, index=True)
    priority = Column(Enum(NotificationPriority), nullable=False, default=NotificationPriority.medium)
    handled_by = Column(String, nullable=True)
    response_sent = Column(Boolean, default=False, nullable=False)
    admin_notes = Column(Text, nullable=True)
