# -*- coding: utf-8 -*-
"""
FastAPI routes for subjects, enrollments and subject billing.
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from portal import billing
from portal.database import get_db
from portal.models.profile import Profile
from portal.models.subject import Subject, Enrollment
from portal.schemas.subject import SubjectCreate, SubjectRead, EnrollmentCreate, EnrollmentRead, SubjectBillRequest
from portal.schemas.due import DueRead
from portal.routes.dues_fastapi import build_due_read

router = APIRouter(
    tags=["Subjects"],
    responses={404: {"description": "Not found"}},
)


def _get_subject(db: Session, subject_id: int) -> Subject:
    db_subject = db.query(Subject).filter(Subject.id == subject_id).first()
    if not db_subject:
        raise HTTPException(status_code=404, detail="Subject not found")
    return db_subject


@router.post("", response_model=SubjectRead, status_code=status.HTTP_201_CREATED)
def create_subject(subject: SubjectCreate, db: Session = Depends(get_db)):
    professor = db.query(Profile).filter(Profile.id == subject.professor_id).first()
    if not professor or professor.role != "professor":
        raise HTTPException(status_code=404, detail="Professor not found")
    if db.query(Subject).filter(Subject.code == subject.code).first():
        raise HTTPException(status_code=400, detail="A subject with this code already exists.")

    db_subject = Subject(**subject.dict())
    db.add(db_subject)
    db.commit()
    db.refresh(db_subject)
    return db_subject


@router.get("", response_model=List[SubjectRead])
def read_subjects(professor_id: Optional[int] = None, active_only: bool = True, db: Session = Depends(get_db)):
    query = db.query(Subject)
    if professor_id is not None:
        query = query.filter(Subject.professor_id == professor_id)
    if active_only:
        query = query.filter(Subject.is_active == True)
    return query.order_by(Subject.name.asc()).all()


@router.post("/{subject_id}/enrollments", response_model=EnrollmentRead, status_code=status.HTTP_201_CREATED)
def enroll_student(subject_id: int, enrollment: EnrollmentCreate, db: Session = Depends(get_db)):
    _get_subject(db, subject_id)
    student = db.query(Profile).filter(Profile.id == enrollment.student_id).first()
    if not student or student.role != "student":
        raise HTTPException(status_code=404, detail="Student not found")

    existing = db.query(Enrollment).filter(
        Enrollment.subject_id == subject_id,
        Enrollment.student_id == enrollment.student_id
    ).first()
    if existing:
        if existing.is_active:
            raise HTTPException(status_code=400, detail="Student is already enrolled in this subject.")
        existing.is_active = True
        db.commit()
        db.refresh(existing)
        return existing

    db_enrollment = Enrollment(subject_id=subject_id, student_id=enrollment.student_id)
    db.add(db_enrollment)
    db.commit()
    db.refresh(db_enrollment)
    return db_enrollment


@router.get("/{subject_id}/enrollments", response_model=List[EnrollmentRead])
def read_enrollments(subject_id: int, db: Session = Depends(get_db)):
    _get_subject(db, subject_id)
    return db.query(Enrollment).filter(Enrollment.subject_id == subject_id, Enrollment.is_active == True).all()


@router.post("/{subject_id}/bill", response_model=List[DueRead], status_code=status.HTTP_201_CREATED)
def bill_subject(
    subject_id: int,
    request: SubjectBillRequest,
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db)
):
    """
    Creates the subject fee as a due for every enrolled student.
    """
    as_of = as_of or date.today()
    dues = billing.bill_subject(
        db, subject_id,
        due_date=request.due_date,
        as_of=as_of,
        description=request.description,
        late_fee_percentage=request.late_fee_percentage,
    )
    return [build_due_read(due, as_of) for due in dues]
