from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.constants.constants import UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2)
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    current_job: Optional[str] = None
    target_job: Optional[str] = None
    country: Optional[str] = None
    location: Optional[str] = None
    years_of_experience: Optional[int] = Field(None, ge=0, le=60)


class UnlockProfileRequest(BaseModel):
    admin_notes: Optional[str] = None


class UserOut(BaseModel):
    id: str
    email: str
    full_name: str
    phone: Optional[str]
    role: UserRole
    is_active: bool
    package_tier: Optional[int]
    linkedin_url: Optional[str]
    current_job: Optional[str]
    target_job: Optional[str]
    country: Optional[str]
    location: Optional[str]
    years_of_experience: Optional[int]
    profile_completed: bool
    onboarding_completed: bool
    onboarding_completion_date: Optional[datetime]
    profile_unlocked: bool
    profile_unlock_date: Optional[datetime]
    payment_confirmed: bool
    suspended_at: Optional[datetime] = None
    suspension_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str


class AdminCreate(BaseModel):
    full_name: str = Field(..., min_length=2)
    email: EmailStr
    password: str
    phone: Optional[str] = None


class SuspendAccountRequest(BaseModel):
    reason: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    new_password: str
