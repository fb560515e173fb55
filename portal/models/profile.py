# portal/models/profile.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from portal.database import Base
from datetime import datetime


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    email = Column(String(100), unique=True, index=True, nullable=False)
    role = Column(String(20), nullable=False, default="student")  # 'student' or 'professor'
    created_at = Column(DateTime, default=datetime.utcnow)

    subjects = relationship("Subject", back_populates="professor")
    enrollments = relationship("Enrollment", back_populates="student")
    dues = relationship("Due", back_populates="student")

    @property
    def full_name(self):
        return " ".join(part for part in (self.first_name, self.last_name) if part)
