# -*- coding: utf-8 -*-
"""
FastAPI routes for student dues.

Every route that depends on the date takes an ``as_of`` query parameter;
today's date is only used when the caller does not send one.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import date

from portal import ledger, store
from portal.database import get_db
from portal.models.due import Due
from portal.schemas.due import DueCreate, DueRead, DuePaginated, SweepResult
from portal.schemas.payment import PaymentRead

router = APIRouter(
    tags=["Dues"],
    responses={404: {"description": "Not found"}},
)


def build_due_read(due: Due, as_of: date) -> DueRead:
    due_data = DueRead.from_orm(due)
    due_data.late_fee = ledger.current_late_fee(due, as_of)
    due_data.total_owed = ledger.total_owed(due, as_of)
    due_data.paid_amount = ledger.paid_sum(due.payments)
    due_data.days_until_due = ledger.days_until_due(due.due_date, as_of)
    return due_data


@router.post("", response_model=DueRead, status_code=status.HTTP_201_CREATED)
def create_due(due: DueCreate, as_of: Optional[date] = Query(None), db: Session = Depends(get_db)):
    as_of = as_of or date.today()
    db_due = store.create_due(db, as_of=as_of, **due.dict())
    return build_due_read(db_due, as_of)


@router.get("", response_model=DuePaginated)
def read_dues(
    student_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    professor_id: Optional[int] = None,
    status: Optional[str] = None,
    due_from: Optional[date] = None,
    due_to: Optional[date] = None,
    skip: int = 0,
    limit: int = 50,
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db)
):
    """
    Lists dues with optional student / subject / professor scoping,
    status and due-date window, paginated.
    """
    as_of = as_of or date.today()
    filters = dict(
        student_id=student_id, subject_id=subject_id, professor_id=professor_id,
        status=status, due_from=due_from, due_to=due_to,
    )
    total = store.count_dues(db, **filters)
    dues = store.list_dues(db, skip=skip, limit=limit, **filters)
    return {"total": total, "dues": [build_due_read(due, as_of) for due in dues]}


@router.post("/sweep", response_model=SweepResult)
def sweep_overdue(as_of: Optional[date] = Query(None), db: Session = Depends(get_db)):
    """
    Marks lapsed pending dues as overdue. Normally run by the scheduler
    through run_overdue_sweep.py; exposed here for manual runs.
    """
    as_of = as_of or date.today()
    count = store.sweep_overdue(db, as_of)
    return {"as_of": as_of, "transitioned": count}


@router.get("/{due_id}", response_model=DueRead)
def read_due(due_id: int, as_of: Optional[date] = Query(None), db: Session = Depends(get_db)):
    as_of = as_of or date.today()
    return build_due_read(store.get_due(db, due_id), as_of)


@router.get("/{due_id}/payments", response_model=List[PaymentRead])
def read_due_payments(due_id: int, db: Session = Depends(get_db)):
    store.get_due(db, due_id)
    return store.list_payments(db, due_id=due_id)
