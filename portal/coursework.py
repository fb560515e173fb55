# -*- coding: utf-8 -*-
"""
Assignments, submissions, grading and study materials.

A professor only publishes and grades within their own subjects; a student
only submits to assignments of subjects they are actively enrolled in, once
per assignment.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.exceptions import NotFound, OwnershipMismatch, InvalidGrade, InvalidSubmission, AlreadySubmitted
from portal.models.assignment import Assignment, AssignmentSubmission
from portal.models.material import StudyMaterial
from portal.models.subject import Subject, Enrollment


def _owned_subject(db: Session, subject_id: int, professor_id: int) -> Subject:
    subject = db.query(Subject).filter(Subject.id == subject_id).first()
    if not subject:
        raise NotFound(f"Subject {subject_id} not found")
    if subject.professor_id != professor_id:
        raise OwnershipMismatch(f"Subject {subject_id} is not taught by professor {professor_id}")
    return subject


def is_late(due_date: Optional[datetime], submitted_at: datetime) -> bool:
    return due_date is not None and submitted_at > due_date


def validate_grade(grade, max_points: int) -> int:
    if isinstance(grade, bool) or not isinstance(grade, int):
        raise InvalidGrade(f"Grade must be a whole number: {grade!r}")
    if not 0 <= grade <= max_points:
        raise InvalidGrade(f"Grade must be between 0 and {max_points}: {grade}")
    return grade


def submission_stats(submissions: List[AssignmentSubmission]) -> dict:
    total = len(submissions)
    graded = sum(1 for s in submissions if s.grade is not None)
    return {"total": total, "graded": graded, "pending": total - graded}


def create_assignment(
    db: Session,
    subject_id: int,
    professor_id: int,
    title: str,
    description: Optional[str] = None,
    due_date: Optional[datetime] = None,
    max_points: int = 100,
) -> Assignment:
    _owned_subject(db, subject_id, professor_id)
    if max_points <= 0:
        raise InvalidGrade(f"max_points must be positive: {max_points}")

    db_assignment = Assignment(
        subject_id=subject_id,
        professor_id=professor_id,
        title=title,
        description=description,
        due_date=due_date,
        max_points=max_points,
    )
    db.add(db_assignment)
    db.commit()
    db.refresh(db_assignment)
    logging.info(f"Assignment #{db_assignment.id} '{title}' created on subject {subject_id}")
    return db_assignment


def get_assignment(db: Session, assignment_id: int) -> Assignment:
    db_assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if db_assignment is None:
        raise NotFound(f"Assignment {assignment_id} not found")
    return db_assignment


def list_assignments(
    db: Session,
    subject_id: Optional[int] = None,
    professor_id: Optional[int] = None,
    student_id: Optional[int] = None,
    active_only: bool = True,
) -> List[Assignment]:
    query = db.query(Assignment)
    if subject_id is not None:
        query = query.filter(Assignment.subject_id == subject_id)
    if professor_id is not None:
        query = query.filter(Assignment.professor_id == professor_id)
    if student_id is not None:
        query = query.join(Enrollment, Enrollment.subject_id == Assignment.subject_id).filter(
            Enrollment.student_id == student_id,
            Enrollment.is_active == True
        )
    if active_only:
        query = query.filter(Assignment.is_active == True)
    return query.order_by(Assignment.created_at.desc(), Assignment.id.desc()).all()


def deactivate_assignment(db: Session, assignment_id: int, professor_id: int) -> Assignment:
    db_assignment = get_assignment(db, assignment_id)
    if db_assignment.professor_id != professor_id:
        raise OwnershipMismatch(f"Assignment {assignment_id} does not belong to professor {professor_id}")
    db_assignment.is_active = False
    db.commit()
    db.refresh(db_assignment)
    logging.info(f"Assignment #{assignment_id} deactivated")
    return db_assignment


def submit_assignment(
    db: Session,
    assignment_id: int,
    student_id: int,
    submitted_at: datetime,
    submitted_text: Optional[str] = None,
    file_name: Optional[str] = None,
    file_url: Optional[str] = None,
    file_size: Optional[int] = None,
    file_type: Optional[str] = None,
) -> AssignmentSubmission:
    db_assignment = get_assignment(db, assignment_id)
    if not db_assignment.is_active:
        raise NotFound(f"Assignment {assignment_id} not found")

    enrolled = db.query(Enrollment).filter(
        Enrollment.subject_id == db_assignment.subject_id,
        Enrollment.student_id == student_id,
        Enrollment.is_active == True
    ).first()
    if not enrolled:
        raise OwnershipMismatch(f"Student {student_id} is not enrolled in subject {db_assignment.subject_id}")

    if not (submitted_text and submitted_text.strip()) and not file_url:
        raise InvalidSubmission("A submission needs a text answer or a file")

    existing = db.query(AssignmentSubmission).filter(
        AssignmentSubmission.assignment_id == assignment_id,
        AssignmentSubmission.student_id == student_id
    ).first()
    if existing:
        raise AlreadySubmitted(f"Student {student_id} already submitted assignment {assignment_id}")

    db_submission = AssignmentSubmission(
        assignment_id=assignment_id,
        student_id=student_id,
        submitted_text=submitted_text,
        file_name=file_name,
        file_url=file_url,
        file_size=file_size,
        file_type=file_type,
        submitted_at=submitted_at,
        is_late=is_late(db_assignment.due_date, submitted_at),
    )
    db.add(db_submission)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadySubmitted(f"Student {student_id} already submitted assignment {assignment_id}")
    db.refresh(db_submission)
    logging.info(
        f"Submission #{db_submission.id} by student {student_id} on assignment #{assignment_id}"
        f"{' (late)' if db_submission.is_late else ''}"
    )
    return db_submission


def list_submissions(
    db: Session,
    assignment_id: Optional[int] = None,
    student_id: Optional[int] = None,
    professor_id: Optional[int] = None,
) -> List[AssignmentSubmission]:
    query = db.query(AssignmentSubmission)
    if assignment_id is not None:
        query = query.filter(AssignmentSubmission.assignment_id == assignment_id)
    if student_id is not None:
        query = query.filter(AssignmentSubmission.student_id == student_id)
    if professor_id is not None:
        query = query.join(Assignment, AssignmentSubmission.assignment_id == Assignment.id)\
                     .filter(Assignment.professor_id == professor_id)
    return query.order_by(AssignmentSubmission.submitted_at.desc(), AssignmentSubmission.id.desc()).all()


def grade_submission(
    db: Session,
    submission_id: int,
    professor_id: int,
    grade,
    graded_at: datetime,
    feedback: Optional[str] = None,
) -> AssignmentSubmission:
    """
    Grades (or regrades) a submission. Only the professor who owns the
    assignment may grade it, and the grade must fit the assignment's scale.
    """
    db_submission = db.query(AssignmentSubmission).filter(AssignmentSubmission.id == submission_id).first()
    if db_submission is None:
        raise NotFound(f"Submission {submission_id} not found")
    assignment = db_submission.assignment
    if assignment.professor_id != professor_id:
        raise OwnershipMismatch(f"Submission {submission_id} is not on an assignment of professor {professor_id}")

    db_submission.grade = validate_grade(grade, assignment.max_points)
    db_submission.feedback = feedback
    db_submission.graded_at = graded_at
    db_submission.graded_by = professor_id
    db.commit()
    db.refresh(db_submission)
    logging.info(f"Submission #{submission_id} graded {grade}/{assignment.max_points}")
    return db_submission


def create_material(
    db: Session,
    subject_id: int,
    professor_id: int,
    title: str,
    file_name: str,
    file_url: str,
    description: Optional[str] = None,
    file_size: Optional[int] = None,
    file_type: Optional[str] = None,
    topic: Optional[str] = None,
) -> StudyMaterial:
    _owned_subject(db, subject_id, professor_id)
    db_material = StudyMaterial(
        subject_id=subject_id,
        professor_id=professor_id,
        title=title,
        description=description,
        file_name=file_name,
        file_url=file_url,
        file_size=file_size,
        file_type=file_type,
        topic=topic,
    )
    db.add(db_material)
    db.commit()
    db.refresh(db_material)
    logging.info(f"Material #{db_material.id} '{title}' published on subject {subject_id}")
    return db_material


def list_materials(
    db: Session,
    subject_id: Optional[int] = None,
    professor_id: Optional[int] = None,
    student_id: Optional[int] = None,
    topic: Optional[str] = None,
) -> List[StudyMaterial]:
    query = db.query(StudyMaterial).filter(StudyMaterial.is_active == True)
    if subject_id is not None:
        query = query.filter(StudyMaterial.subject_id == subject_id)
    if professor_id is not None:
        query = query.filter(StudyMaterial.professor_id == professor_id)
    if student_id is not None:
        query = query.join(Enrollment, Enrollment.subject_id == StudyMaterial.subject_id).filter(
            Enrollment.student_id == student_id,
            Enrollment.is_active == True
        )
    if topic:
        query = query.filter(StudyMaterial.topic == topic)
    return query.order_by(StudyMaterial.created_at.desc(), StudyMaterial.id.desc()).all()


def deactivate_material(db: Session, material_id: int, professor_id: int) -> StudyMaterial:
    db_material = db.query(StudyMaterial).filter(StudyMaterial.id == material_id).first()
    if db_material is None:
        raise NotFound(f"Material {material_id} not found")
    if db_material.professor_id != professor_id:
        raise OwnershipMismatch(f"Material {material_id} does not belong to professor {professor_id}")
    db_material.is_active = False
    db.commit()
    logging.info(f"Material #{material_id} deactivated")
    return db_material
