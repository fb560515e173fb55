# -*- coding: utf-8 -*-
"""
SQLAlchemy models for assignments and the students' submissions.

Files are referenced by URL; storing them is the front-end's business.
"""
from sqlalchemy import (Column, Integer, String, Boolean, DateTime, ForeignKey, Text,
                        UniqueConstraint, CheckConstraint)
from sqlalchemy.orm import relationship
from portal.database import Base
from datetime import datetime


class Assignment(Base):
    __tablename__ = "assignments"
    __table_args__ = (
        CheckConstraint("max_points > 0", name="ck_assignment_max_points_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False, index=True)
    professor_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    due_date = Column(DateTime, nullable=True)  # local wall-clock time
    max_points = Column(Integer, nullable=False, default=100)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    subject = relationship("Subject", back_populates="assignments")
    professor = relationship("Profile")
    submissions = relationship("AssignmentSubmission", back_populates="assignment",
                               order_by="AssignmentSubmission.submitted_at")


class AssignmentSubmission(Base):
    __tablename__ = "assignment_submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    file_name = Column(String(255), nullable=True)
    file_url = Column(String(500), nullable=True)
    file_size = Column(Integer, nullable=True)
    file_type = Column(String(100), nullable=True)
    submitted_text = Column(Text, nullable=True)
    submitted_at = Column(DateTime, nullable=False, default=datetime.now)
    is_late = Column(Boolean, nullable=False, default=False)

    grade = Column(Integer, nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime, nullable=True)
    graded_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("Profile", foreign_keys=[student_id])
    grader = relationship("Profile", foreign_keys=[graded_by])
