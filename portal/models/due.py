# portal/models/due.py
import enum
from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import relationship
from portal.database import Base
from datetime import datetime


class DueStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    FAILED = "failed"


OPEN_STATUSES = (DueStatus.PENDING.value, DueStatus.OVERDUE.value)
TERMINAL_STATUSES = (DueStatus.PAID.value, DueStatus.FAILED.value)


class Due(Base):
    __tablename__ = "student_dues"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_due_amount_non_negative"),
        CheckConstraint("late_fee_percentage >= 0 AND late_fee_percentage <= 100", name="ck_due_late_fee_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=True, index=True)
    description = Column(Text, nullable=False)
    amount = Column(Integer, nullable=False)  # base amount in minor units, never float
    due_date = Column(Date, nullable=False, index=True)
    late_fee_percentage = Column(Numeric(5, 2), nullable=False, default=5)
    status = Column(String(20), nullable=False, default=DueStatus.PENDING.value, index=True)
    # Day the payments first covered the total; the late fee is frozen there
    paid_on = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = relationship("Profile", back_populates="dues")
    subject = relationship("Subject", back_populates="dues")
    payments = relationship("Payment", back_populates="due", order_by="Payment.paid_at")
