# -*- coding: utf-8 -*-
"""
Pydantic schemas for subjects and enrollments.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal


class SubjectBase(BaseModel):
    name: str = Field(..., max_length=100)
    code: str = Field(..., max_length=20)
    description: Optional[str] = None
    professor_id: int
    fee_amount: int = Field(0, ge=0)
    is_active: bool = True


class SubjectCreate(SubjectBase):
    pass


class SubjectRead(SubjectBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EnrollmentCreate(BaseModel):
    student_id: int


class EnrollmentRead(BaseModel):
    id: int
    student_id: int
    subject_id: int
    enrolled_at: Optional[datetime] = None
    is_active: bool

    class Config:
        from_attributes = True


class SubjectBillRequest(BaseModel):
    due_date: date
    description: Optional[str] = None
    late_fee_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
