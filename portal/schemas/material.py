# -*- coding: utf-8 -*-
"""
Pydantic schemas for study materials.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class MaterialBase(BaseModel):
    subject_id: int
    professor_id: int
    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    file_name: str = Field(..., max_length=255)
    file_url: str = Field(..., max_length=500)
    file_size: Optional[int] = Field(None, ge=0)
    file_type: Optional[str] = Field(None, max_length=100)
    topic: Optional[str] = Field(None, max_length=100)


class MaterialCreate(MaterialBase):
    pass


class MaterialRead(MaterialBase):
    id: int
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
