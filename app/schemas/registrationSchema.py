from typing import Optional
from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str
    confirm_password: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
