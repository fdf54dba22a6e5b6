"""Client and admin accounts for the concierge service."""

from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, Enum

from app.constants.constants import UserRole
from app.models.base import Base, TimestampMixin, generate_uuid


class RegisteredUser(Base, TimestampMixin):
    __tablename__ = "registered_users"

    id = Column(String, primary_key=True, index=True, default=generate_uuid)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.client)
    passcode_hash = Column(String, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
    package_tier = Column(Integer, nullable=True)  # 1..3
    last_login_at = Column(DateTime, nullable=True)

    # Account management
    password_changed_at = Column(DateTime, nullable=True)
    password_reset_by = Column(String, nullable=True)
    suspended_at = Column(DateTime, nullable=True)
    suspended_by = Column(String, nullable=True)
    suspension_reason = Column(Text, nullable=True)
    reactivated_at = Column(DateTime, nullable=True)
    reactivated_by = Column(String, nullable=True)
    created_by = Column(String, nullable=True)

    # Profile
    linkedin_url = Column(String, nullable=True)
    current_job = Column(String, nullable=True)
    target_job = Column(String, nullable=True)
    country = Column(String, nullable=True)
    location = Column(String, nullable=True)
    years_of_experience = Column(Integer, nullable=True)
    profile_completed = Column(Boolean, default=False, nullable=False)

    # Onboarding
    onboarding_completed = Column(Boolean, default=False, nullable=False)
    onboarding_completion_date = Column(DateTime, nullable=True)

    # Application Tracker gate
    profile_unlocked = Column(Boolean, default=False, nullable=False)
    profile_unlock_date = Column(DateTime, nullable=True)
    profile_unlocked_by = Column(String, nullable=True)
    profile_unlock_notes = Column(Text, nullable=True)

    # Payment and registration token
    payment_confirmed = Column(Boolean, default=False, nullable=False)
    payment_confirmed_at = Column(DateTime, nullable=True)
    registration_token = Column(Text, nullable=True)
    token_expires_at = Column(DateTime, nullable=True)
    token_used = Column(Boolean, default=False, nullable=False)
    consultation_id = Column(String, nullable=True, index=True)
