from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class NotificationOut(BaseModel):
    id: str
    type: str
    title: str
    message: str
    category: str
    priority: str
    metadata: Dict[str, Any] = Field(validation_alias="meta")
    action_url: Optional[str]
    action_text: Optional[str]
    is_read: bool
    read_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
