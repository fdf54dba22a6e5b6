from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.constants.constants import ContactRequestStatus, ContactSource, NotificationPriority


class ContactRequestCreate(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    source: ContactSource = ContactSource.contact_form


class ContactRequestUpdate(BaseModel):
    status: Optional[ContactRequestStatus] = None
    priority: Optional[NotificationPriority] = None
    response_sent: Optional[bool] = None
    admin_notes: Optional[str] = None


class ContactRequestOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    subject: str
    message: str
    source: ContactSource
    status: ContactRequestStatus
    priority: NotificationPriority
    handled_by: Optional[str]
    response_sent: bool
    admin_notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
