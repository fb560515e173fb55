# portal/schemas/payment.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from portal.models.payment import PaymentMethod


class PaymentBase(BaseModel):
    student_id: int
    due_id: int
    amount: int = Field(..., gt=0, description="Amount paid in minor currency units")
    payment_method: PaymentMethod
    payment_reference: Optional[str] = Field(None, max_length=255)


class PaymentCreate(PaymentBase):
    # Defaults to now (UTC) when omitted
    paid_at: Optional[datetime] = None


class PaymentRead(PaymentBase):
    id: int
    gateway_payment_id: Optional[str] = None
    paid_at: datetime
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentReceipt(BaseModel):
    payment: PaymentRead
    due_status: str
    paid_amount: int
    total_owed: int
