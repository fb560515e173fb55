# -*- coding: utf-8 -*-
"""
Bulk billing: one due per active enrollment of a subject.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session, joinedload

from portal import store
from portal.exceptions import NotFound
from portal.models.due import Due
from portal.models.subject import Subject, Enrollment


def bill_subject(
    db: Session,
    subject_id: int,
    due_date: date,
    as_of: date,
    description: Optional[str] = None,
    late_fee_percentage=None,
) -> List[Due]:
    """
    Creates the subject's fee as a due for every actively enrolled student.
    Students that already have a due for this subject and date are skipped,
    so running it twice for the same date creates nothing new.
    """
    subject = db.query(Subject).options(
        joinedload(Subject.enrollments).joinedload(Enrollment.student)
    ).filter(Subject.id == subject_id).first()
    if not subject:
        raise NotFound(f"Subject {subject_id} not found")

    if description is None:
        description = f"{subject.name} fee - {due_date.strftime('%m/%Y')}"

    created = []
    for enrollment in subject.enrollments:
        if not enrollment.is_active or not enrollment.student:
            continue

        existing = db.query(Due).filter(
            and_(
                Due.student_id == enrollment.student_id,
                Due.subject_id == subject.id,
                Due.due_date == due_date
            )
        ).first()
        if existing:
            continue

        created.append(store.create_due(
            db,
            student_id=enrollment.student_id,
            subject_id=subject.id,
            description=description,
            amount=subject.fee_amount,
            due_date=due_date,
            as_of=as_of,
            late_fee_percentage=late_fee_percentage,
        ))

    logging.info(f"Subject {subject.code}: {len(created)} due(s) generated for {due_date}")
    return created
