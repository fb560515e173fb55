# portal/models/payment.py
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from portal.database import Base
from datetime import datetime


class PaymentMethod(str, enum.Enum):
    CARD = "card"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payment_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    due_id = Column(Integer, ForeignKey("student_dues.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # minor units
    payment_method = Column(String(20), nullable=False)
    payment_reference = Column(String(255), nullable=True)
    gateway_payment_id = Column(String(100), nullable=True, unique=True)
    paid_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)

    due = relationship("Due", back_populates="payments")
    student = relationship("Profile")
