from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ResourceCreate(BaseModel):
    title: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    description: Optional[str] = None
    download_url: str = Field(..., min_length=1)
    tier_required: int = Field(1, ge=1, le=3)


class ResourceUpdate(BaseModel):
    title: Optional[str] = None
    type: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    download_url: Optional[str] = None
    tier_required: Optional[int] = Field(None, ge=1, le=3)
    is_active: Optional[bool] = None


class ResourceOut(BaseModel):
    id: str
    title: str
    type: str
    category: str
    description: Optional[str]
    download_url: str
    tier_required: int
    download_count: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
