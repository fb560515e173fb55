# -*- coding: utf-8 -*-
"""
Data-access layer for dues and payments.

``create_due``, ``record_payment``, ``mark_due_failed`` and ``sweep_overdue``
are complete units of work and commit. ``update_due_status`` runs inside the
caller's transaction.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from portal import ledger
from portal.config import Config
from portal.exceptions import LedgerError, NotFound, InvalidAmount, OwnershipMismatch, ConcurrentUpdateConflict
from portal.models.due import Due, DueStatus
from portal.models.payment import Payment, PaymentMethod
from portal.models.profile import Profile
from portal.models.subject import Subject


def create_due(
    db: Session,
    student_id: int,
    description: str,
    amount: int,
    due_date: date,
    as_of: date,
    subject_id: Optional[int] = None,
    late_fee_percentage=None,
) -> Due:
    if amount is None or amount < 0:
        raise InvalidAmount(f"Due amount cannot be negative: {amount}")

    student = db.query(Profile).filter(Profile.id == student_id, Profile.role == "student").first()
    if not student:
        raise NotFound(f"Student {student_id} not found")
    if subject_id is not None:
        subject = db.query(Subject).filter(Subject.id == subject_id).first()
        if not subject:
            raise NotFound(f"Subject {subject_id} not found")

    if late_fee_percentage is None:
        late_fee_percentage = Config.DEFAULT_LATE_FEE_PERCENTAGE
    if not 0 <= Decimal(str(late_fee_percentage)) <= 100:
        raise InvalidAmount(f"Late fee percentage must be between 0 and 100: {late_fee_percentage}")

    db_due = Due(
        student_id=student_id,
        subject_id=subject_id,
        description=description,
        amount=amount,
        due_date=due_date,
        late_fee_percentage=late_fee_percentage,
        status=DueStatus.PENDING.value,
    )
    # A zero amount due, or one created after its date, starts settled/overdue
    db_due.status = ledger.compute_status(db_due, [], as_of)
    if db_due.status == DueStatus.PAID.value:
        db_due.paid_on = as_of

    db.add(db_due)
    db.commit()
    db.refresh(db_due)
    logging.info(f"Due #{db_due.id} created for student {student_id}: {amount} due {due_date} ({db_due.status})")
    return db_due


def get_due(db: Session, due_id: int) -> Due:
    db_due = db.query(Due).filter(Due.id == due_id).first()
    if db_due is None:
        raise NotFound(f"Due {due_id} not found")
    return db_due


def _dues_query(
    db: Session,
    student_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    professor_id: Optional[int] = None,
    status: Optional[str] = None,
    due_from: Optional[date] = None,
    due_to: Optional[date] = None,
):
    query = db.query(Due)
    if student_id is not None:
        query = query.filter(Due.student_id == student_id)
    if subject_id is not None:
        query = query.filter(Due.subject_id == subject_id)
    if professor_id is not None:
        query = query.join(Subject, Due.subject_id == Subject.id).filter(Subject.professor_id == professor_id)
    if status:
        query = query.filter(Due.status == status)
    if due_from:
        query = query.filter(Due.due_date >= due_from)
    if due_to:
        query = query.filter(Due.due_date <= due_to)
    return query


def list_dues(db: Session, skip: int = 0, limit: Optional[int] = None, **filters) -> List[Due]:
    query = _dues_query(db, **filters).order_by(Due.due_date.asc(), Due.id.asc()).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def count_dues(db: Session, **filters) -> int:
    return _dues_query(db, **filters).count()


def list_payments(db: Session, due_id: Optional[int] = None, student_id: Optional[int] = None) -> List[Payment]:
    query = db.query(Payment)
    if due_id is not None:
        query = query.filter(Payment.due_id == due_id)
    if student_id is not None:
        query = query.filter(Payment.student_id == student_id)
    return query.order_by(Payment.paid_at.asc(), Payment.id.asc()).all()


def get_paid_sum(db: Session, due_id: int) -> int:
    return db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(Payment.due_id == due_id).scalar()


def update_due_status(
    db: Session,
    due_id: int,
    status: str,
    expected: Optional[str] = None,
    paid_on: Optional[date] = None,
) -> bool:
    """
    Compare-and-set of a due's status.

    Returns True when the row changed, False when it already had ``status``.
    Raises ConcurrentUpdateConflict when it holds some other status than
    ``expected``.
    """
    query = db.query(Due).filter(Due.id == due_id)
    if expected is not None:
        query = query.filter(Due.status == expected)

    values = {Due.status: status, Due.updated_at: datetime.utcnow()}
    if status == DueStatus.PAID.value:
        values[Due.paid_on] = paid_on

    if query.update(values, synchronize_session=False):
        return True

    current = db.query(Due.status).filter(Due.id == due_id).scalar()
    if current is None:
        raise NotFound(f"Due {due_id} not found")
    if current == status:
        return False
    raise ConcurrentUpdateConflict(
        f"Due {due_id} is '{current}', expected '{expected}' while moving to '{status}'"
    )


def _find_gateway_payment(db: Session, gateway_payment_id: str) -> Optional[Payment]:
    return db.query(Payment).filter(Payment.gateway_payment_id == gateway_payment_id).first()


def _status_after_payment(db_due: Due, payments: List[Payment], paid_at: datetime, as_of: date):
    """
    Status of a due once ``payments`` are on it, and the day it became paid.

    Sufficiency is checked on the payment's own day, so a backdated payment
    freezes the fee it was made under. Anything short of paid is evaluated
    on ``as_of``; an overdue due never goes back to pending.
    """
    pay_date = min(paid_at.date(), as_of)
    if ledger.compute_status(db_due, payments, pay_date) == DueStatus.PAID.value:
        return DueStatus.PAID.value, pay_date

    new_status = ledger.compute_status(db_due, payments, as_of)
    if db_due.status == DueStatus.OVERDUE.value and new_status == DueStatus.PENDING.value:
        new_status = DueStatus.OVERDUE.value
    return new_status, None


def record_payment(
    db: Session,
    due_id: int,
    student_id: int,
    amount: int,
    payment_method: str,
    paid_at: datetime,
    as_of: date,
    payment_reference: Optional[str] = None,
    gateway_payment_id: Optional[str] = None,
) -> Payment:
    """
    Append a payment to a due and recompute the due's status in the same
    transaction. ``as_of`` is the day the payment is recorded; ``paid_at``
    may lie before it.
    """
    if amount is None or amount <= 0:
        raise InvalidAmount(f"Payment amount must be positive: {amount}")
    method = PaymentMethod(payment_method).value

    try:
        # Row lock on the due serializes concurrent payments against it
        db_due = db.query(Due).filter(Due.id == due_id)\
                   .with_for_update().populate_existing().first()
        if db_due is None:
            raise NotFound(f"Due {due_id} not found")
        if db_due.student_id != student_id:
            raise OwnershipMismatch(f"Due {due_id} does not belong to student {student_id}")

        if gateway_payment_id:
            existing = _find_gateway_payment(db, gateway_payment_id)
            if existing:
                db.rollback()
                logging.info(f"Gateway payment {gateway_payment_id} already recorded as #{existing.id}")
                return existing

        db_payment = Payment(
            student_id=student_id,
            due_id=due_id,
            amount=amount,
            payment_method=method,
            payment_reference=payment_reference,
            gateway_payment_id=gateway_payment_id,
            paid_at=paid_at,
        )
        db.add(db_payment)
        db.flush()

        payments = db.query(Payment).filter(Payment.due_id == due_id).all()
        previous = db_due.status
        new_status, paid_on = _status_after_payment(db_due, payments, paid_at, as_of)
        if new_status != previous:
            update_due_status(db, due_id, new_status, expected=previous, paid_on=paid_on)
        db.commit()
    except LedgerError:
        db.rollback()
        raise
    except IntegrityError:
        db.rollback()
        # Another delivery of the same gateway payment won the insert
        existing = _find_gateway_payment(db, gateway_payment_id) if gateway_payment_id else None
        if existing is None:
            raise
        logging.info(f"Gateway payment {gateway_payment_id} recorded concurrently as #{existing.id}")
        return existing
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(db_payment)
    db.expire(db_due)
    logging.info(f"Payment #{db_payment.id} of {amount} ({method}) recorded on due #{due_id}: {previous} -> {new_status}")
    return db_payment


def mark_due_failed(db: Session, due_id: int) -> Due:
    """
    Gateway reported a failed settlement. ``paid`` dues are left alone.
    """
    db_due = get_due(db, due_id)
    if db_due.status == DueStatus.FAILED.value:
        return db_due
    if db_due.status == DueStatus.PAID.value:
        logging.warning(f"Ignoring failure notice for due #{due_id}: already paid")
        return db_due

    try:
        update_due_status(db, due_id, DueStatus.FAILED.value, expected=db_due.status)
        db.commit()
    except LedgerError:
        db.rollback()
        raise

    db.refresh(db_due)
    logging.info(f"Due #{due_id} marked as failed")
    return db_due


def sweep_overdue(db: Session, as_of: date) -> int:
    """
    Move every pending due whose date is before ``as_of`` to overdue.
    Returns the number of dues moved; a second run on the same day moves none.
    """
    count = db.query(Due).filter(
        Due.status == DueStatus.PENDING.value,
        Due.due_date < as_of
    ).update(
        {Due.status: DueStatus.OVERDUE.value, Due.updated_at: datetime.utcnow()},
        synchronize_session=False
    )
    db.commit()
    logging.info(f"Overdue sweep as of {as_of}: {count} due(s) moved to overdue")
    return count
