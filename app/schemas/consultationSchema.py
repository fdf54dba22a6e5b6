from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, EmailStr, Field

from app.constants.constants import AdminStatus, ConsultationStatus, PipelineStatus
from app.schemas.commonSchema import SlotSchema


class ConsultationSubmit(BaseModel):
    """Public consultation request."""
    full_name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=40)
    message: Optional[str] = Field(None, max_length=5000)
    preferred_slots: List[SlotSchema] = Field(..., min_length=1)


class NewTimesSubmit(BaseModel):
    preferred_slots: List[SlotSchema]
    client_message: Optional[str] = None


class ConfirmConsultationRequest(BaseModel):
    selected_slot_index: int
    meeting_link: Optional[str] = None
    admin_notes: Optional[str] = None


class RescheduleRequest(BaseModel):
    reschedule_reason: Optional[str] = None
    admin_notes: Optional[str] = None


class WaitlistRequest(BaseModel):
    waitlist_reason: Optional[str] = None
    admin_notes: Optional[str] = None


class RejectRequest(BaseModel):
    rejection_reason: Optional[str] = None


class AdminNotesRequest(BaseModel):
    admin_notes: Optional[str] = None


class VerifyPaymentRequest(BaseModel):
    payment_amount: Decimal = Field(..., gt=0)
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    package_tier: Optional[int] = Field(None, ge=1, le=3)
    admin_notes: Optional[str] = None


class ConsultationUpdate(BaseModel):
    """PATCH body: notes and pipeline moves."""
    admin_notes: Optional[str] = None
    status: Optional[ConsultationStatus] = None
    rejection_reason: Optional[str] = None


class ConsultationOut(BaseModel):
    id: str
    full_name: str
    email: str
    phone: Optional[str]
    message: Optional[str]
    preferred_slots: List[Dict[str, Any]]
    status: ConsultationStatus
    admin_status: AdminStatus
    pipeline_status: PipelineStatus
    admin_notes: Optional[str]
    confirmed_slot: Optional[Dict[str, Any]]
    confirmed_time: Optional[datetime]
    meeting_link: Optional[str]
    confirmed_by: Optional[str]
    confirmed_at: Optional[datetime]
    reschedule_reason: Optional[str]
    waitlist_reason: Optional[str]
    rejection_reason: Optional[str]
    payment_amount: Optional[Decimal]
    package_tier: Optional[int]
    payment_verified_at: Optional[datetime]
    token_expires_at: Optional[datetime]
    token_used: bool
    registered_user_id: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
