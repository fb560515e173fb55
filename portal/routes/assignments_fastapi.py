# -*- coding: utf-8 -*-
"""
FastAPI routes for assignments, submissions and grading.
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from portal import coursework
from portal.database import get_db
from portal.schemas.assignment import (AssignmentCreate, AssignmentRead, SubmissionCreate, SubmissionRead,
                                       GradeCreate, SubmissionStats)

router = APIRouter(
    tags=["Assignments"],
    responses={404: {"description": "Not found"}},
)


@router.post("", response_model=AssignmentRead, status_code=status.HTTP_201_CREATED)
def create_assignment(assignment: AssignmentCreate, db: Session = Depends(get_db)):
    return coursework.create_assignment(db, **assignment.dict())


@router.get("", response_model=List[AssignmentRead])
def read_assignments(
    subject_id: Optional[int] = None,
    professor_id: Optional[int] = None,
    student_id: Optional[int] = None,
    active_only: bool = True,
    db: Session = Depends(get_db)
):
    """
    Lists assignments of a subject, of a professor, or of the subjects a
    student is enrolled in.
    """
    return coursework.list_assignments(
        db, subject_id=subject_id, professor_id=professor_id, student_id=student_id, active_only=active_only
    )


@router.get("/submissions", response_model=List[SubmissionRead])
def read_all_submissions(
    student_id: Optional[int] = None,
    professor_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    return coursework.list_submissions(db, student_id=student_id, professor_id=professor_id)


@router.put("/submissions/{submission_id}/grade", response_model=SubmissionRead)
def grade_submission(submission_id: int, grading: GradeCreate, db: Session = Depends(get_db)):
    return coursework.grade_submission(
        db, submission_id,
        professor_id=grading.professor_id,
        grade=grading.grade,
        feedback=grading.feedback,
        graded_at=datetime.now(),
    )


@router.get("/{assignment_id}", response_model=AssignmentRead)
def read_assignment(assignment_id: int, db: Session = Depends(get_db)):
    return coursework.get_assignment(db, assignment_id)


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(assignment_id: int, professor_id: int, db: Session = Depends(get_db)):
    """
    Hides the assignment; its submissions and grades are kept.
    """
    coursework.deactivate_assignment(db, assignment_id, professor_id)
    return None


@router.post("/{assignment_id}/submissions", response_model=SubmissionRead, status_code=status.HTTP_201_CREATED)
def submit_assignment(assignment_id: int, submission: SubmissionCreate, db: Session = Depends(get_db)):
    data = submission.dict()
    data["submitted_at"] = data["submitted_at"] or datetime.now()
    return coursework.submit_assignment(db, assignment_id, **data)


@router.get("/{assignment_id}/submissions", response_model=List[SubmissionRead])
def read_submissions(assignment_id: int, db: Session = Depends(get_db)):
    coursework.get_assignment(db, assignment_id)
    return coursework.list_submissions(db, assignment_id=assignment_id)


@router.get("/{assignment_id}/submissions/stats", response_model=SubmissionStats)
def read_submission_stats(assignment_id: int, db: Session = Depends(get_db)):
    coursework.get_assignment(db, assignment_id)
    return coursework.submission_stats(coursework.list_submissions(db, assignment_id=assignment_id))
