from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from app.constants.constants import MeetingStatus
from app.schemas.commonSchema import SlotSchema


class StrategyCallRequest(BaseModel):
    preferred_slots: List[SlotSchema]
    timezone: Optional[str] = None
    preparation_notes: Optional[str] = None
    specific_topics: List[str] = Field(default_factory=list)
    urgency_level: str = Field("normal", pattern="^(low|normal|high|urgent)$")


class StrategyCallNewTimes(BaseModel):
    preferred_slots: List[SlotSchema]


class ConfirmStrategyCallRequest(BaseModel):
    selected_slot_index: int
    meeting_link: Optional[str] = None
    admin_notes: Optional[str] = None


class RequestNewAvailability(BaseModel):
    reason: Optional[str] = None
    admin_notes: Optional[str] = None


class CancelMeetingRequest(BaseModel):
    reason: Optional[str] = None


class StrategyCallOut(BaseModel):
    id: str
    user_id: str
    preferred_slots: List[Dict[str, Any]]
    timezone: Optional[str]
    preparation_notes: Optional[str]
    specific_topics: List[str]
    urgency_level: str
    status: MeetingStatus
    confirmed_slot: Optional[Dict[str, Any]]
    confirmed_time: Optional[datetime]
    meeting_link: Optional[str]
    confirmed_by: Optional[str]
    confirmed_at: Optional[datetime]
    reschedule_reason: Optional[str]
    admin_notes: Optional[str]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
