# -*- coding: utf-8 -*-
"""
Pydantic schemas for assignments, submissions and grading.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class AssignmentBase(BaseModel):
    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    subject_id: int
    professor_id: int
    due_date: Optional[datetime] = None
    max_points: int = Field(100, gt=0)


class AssignmentCreate(AssignmentBase):
    pass


class AssignmentRead(AssignmentBase):
    id: int
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubmissionCreate(BaseModel):
    student_id: int
    submitted_text: Optional[str] = None
    file_name: Optional[str] = Field(None, max_length=255)
    file_url: Optional[str] = Field(None, max_length=500)
    file_size: Optional[int] = Field(None, ge=0)
    file_type: Optional[str] = Field(None, max_length=100)
    submitted_at: Optional[datetime] = None


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    submitted_text: Optional[str] = None
    file_name: Optional[str] = None
    file_url: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    submitted_at: datetime
    is_late: bool
    grade: Optional[int] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by: Optional[int] = None

    class Config:
        from_attributes = True


class GradeCreate(BaseModel):
    professor_id: int
    grade: int
    feedback: Optional[str] = None


class SubmissionStats(BaseModel):
    total: int
    graded: int
    pending: int
