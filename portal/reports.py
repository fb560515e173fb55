# -*- coding: utf-8 -*-
"""
Read-side projections over dues and payments for the dashboards.

The aggregate functions take already-loaded sequences and hold no state;
scoping to a student or a professor is done beforehand with
``dues_for_student`` / ``dues_for_professor``.
"""
from datetime import date, timedelta

from sqlalchemy.orm import Session, joinedload

from portal import ledger
from portal.models.due import Due, DueStatus, OPEN_STATUSES
from portal.models.subject import Subject


def outstanding_total(dues, as_of: date) -> int:
    return sum(ledger.total_owed(due, as_of) for due in dues if due.status in OPEN_STATUSES)


def collected_total(dues) -> int:
    return sum(due.amount for due in dues if due.status == DueStatus.PAID.value)


def paid_total(payments) -> int:
    return ledger.paid_sum(payments)


def overdue_count(dues) -> int:
    return sum(1 for due in dues if due.status == DueStatus.OVERDUE.value)


def due_within_days(dues, days: int, as_of: date):
    """Open dues falling due between ``as_of`` and ``as_of + days`` (inclusive)."""
    limit = as_of + timedelta(days=days)
    return [
        due for due in dues
        if due.status in OPEN_STATUSES and as_of <= due.due_date <= limit
    ]


def summarize(dues, as_of: date, within_days: int = 7) -> dict:
    dues = list(dues)
    counts = {status.value: 0 for status in DueStatus}
    for due in dues:
        counts[due.status] = counts.get(due.status, 0) + 1

    return {
        "total_dues": len(dues),
        "total_amount": sum(due.amount for due in dues),
        "paid_count": counts[DueStatus.PAID.value],
        "pending_count": counts[DueStatus.PENDING.value],
        "overdue_count": counts[DueStatus.OVERDUE.value],
        "failed_count": counts[DueStatus.FAILED.value],
        "outstanding_total": outstanding_total(dues, as_of),
        "collected_total": collected_total(dues),
        "due_soon_count": len(due_within_days(dues, within_days, as_of)),
    }


# --- Scoping ---

def dues_for_student(db: Session, student_id: int):
    return db.query(Due).filter(Due.student_id == student_id)\
             .order_by(Due.due_date.asc()).all()


def dues_for_professor(db: Session, professor_id: int):
    return db.query(Due).options(joinedload(Due.subject))\
             .join(Subject, Due.subject_id == Subject.id)\
             .filter(Subject.professor_id == professor_id)\
             .order_by(Due.due_date.asc()).all()
