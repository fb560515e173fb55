# -*- coding: utf-8 -*-
"""
Pydantic schemas for student dues.
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from portal.models.due import DueStatus


class DueBase(BaseModel):
    student_id: int
    subject_id: Optional[int] = None
    description: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0, description="Base amount in minor currency units")
    due_date: date
    late_fee_percentage: Optional[Decimal] = Field(None, ge=0, le=100)


class DueCreate(DueBase):
    pass


class DueRead(DueBase):
    id: int
    late_fee_percentage: Decimal
    status: DueStatus
    paid_on: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Filled in by the routes for the requested as_of date
    late_fee: int = 0
    total_owed: int = 0
    paid_amount: int = 0
    days_until_due: Optional[int] = None

    class Config:
        from_attributes = True


class DuePaginated(BaseModel):
    total: int
    dues: List[DueRead]


class SweepResult(BaseModel):
    as_of: date
    transitioned: int
