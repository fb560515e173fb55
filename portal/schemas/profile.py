# portal/schemas/profile.py
from pydantic import BaseModel, Field, EmailStr
from typing import Optional, Literal
from datetime import datetime


class ProfileBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: EmailStr
    role: Literal["student", "professor"] = "student"


class ProfileCreate(ProfileBase):
    pass


class ProfileRead(ProfileBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
