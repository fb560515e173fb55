# -*- coding: utf-8 -*-
"""
FastAPI routes for payments against student dues.
"""
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from portal import ledger, store
from portal.database import get_db
from portal.schemas.payment import PaymentCreate, PaymentRead, PaymentReceipt
from portal.routes import payments_mercadopago

router = APIRouter(
    tags=["Payments"],
)


class GatewayChargeRequest(BaseModel):
    payer_email: EmailStr


@router.post("", response_model=PaymentReceipt, status_code=status.HTTP_201_CREATED)
def record_payment(payment: PaymentCreate, as_of: Optional[date] = Query(None), db: Session = Depends(get_db)):
    """
    Records a payment and returns it with the due's recomputed status.
    """
    as_of = as_of or date.today()
    paid_at = payment.paid_at or datetime.now()
    db_payment = store.record_payment(
        db,
        due_id=payment.due_id,
        student_id=payment.student_id,
        amount=payment.amount,
        payment_method=payment.payment_method.value,
        paid_at=paid_at,
        as_of=as_of,
        payment_reference=payment.payment_reference,
    )
    db_due = store.get_due(db, payment.due_id)
    return {
        "payment": PaymentRead.from_orm(db_payment),
        "due_status": db_due.status,
        "paid_amount": store.get_paid_sum(db, db_due.id),
        "total_owed": ledger.total_owed(db_due, as_of),
    }


@router.get("", response_model=List[PaymentRead])
def read_payments(student_id: Optional[int] = None, due_id: Optional[int] = None, db: Session = Depends(get_db)):
    return store.list_payments(db, due_id=due_id, student_id=student_id)


@router.get("/status/{due_id}")
def check_payment_status(due_id: int, db: Session = Depends(get_db)):
    """
    Due status, polled by the front-end while a gateway charge is open.
    """
    return {"status": store.get_due(db, due_id).status}


@router.post("/gateway/charge/{due_id}")
def create_gateway_charge(
    due_id: int,
    charge: GatewayChargeRequest,
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db)
):
    return payments_mercadopago.create_gateway_charge(
        db, due_id, payer_email=charge.payer_email, as_of=as_of or date.today()
    )


@router.post("/mercadopago/webhook")
async def mercadopago_webhook(request: Request, db: Session = Depends(get_db)):
    return await payments_mercadopago.handle_mp_webhook(request, db)
