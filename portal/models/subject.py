# -*- coding: utf-8 -*-
"""
SQLAlchemy models for subjects and the student/subject enrollments.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from portal.database import Base
from datetime import datetime


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    code = Column(String(20), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    professor_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    fee_amount = Column(Integer, nullable=False, default=0)  # minor units (cents/paisa)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    professor = relationship("Profile", back_populates="subjects")
    enrollments = relationship("Enrollment", back_populates="subject")
    dues = relationship("Due", back_populates="subject")
    assignments = relationship("Assignment", back_populates="subject")
    materials = relationship("StudyMaterial", back_populates="subject")


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("student_id", "subject_id", name="uq_enrollment_student_subject"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False, index=True)
    enrolled_at = Column(DateTime, default=datetime.utcnow)
    is_active = Column(Boolean, default=True)

    student = relationship("Profile", back_populates="enrollments")
    subject = relationship("Subject", back_populates="enrollments")
