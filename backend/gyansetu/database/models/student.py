# gyansetu/database/models/student.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
from datetime import datetime
from ..base import Base
import enum

class ResultStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"

class Student(Base):
    """Scholarship application row (same columns as the hosted `students` table)"""
    __tablename__ = "students"
    
    id = Column(Integer, primary_key=True, index=True)

    # Personal
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True, index=True)
    date_of_birth = Column(String, nullable=True)
    address = Column(Text, nullable=True)

    # School
    school_name = Column(String, nullable=False)
    board = Column(String, nullable=True)
    class_name = Column(String, nullable=False)

    # Payment
    payment_status = Column(String, nullable=False, default="pending")
    payment_reference = Column(String, nullable=True, unique=True)

    # Filled in by admins
    roll_number = Column(String, nullable=True)
    exam_center = Column(String, nullable=True)
    result_status = Column(Enum(ResultStatus, values_callable=lambda e: [m.value for m in e]),
                           nullable=False, default=ResultStatus.PENDING)
    document_url = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "date_of_birth": self.date_of_birth,
            "address": self.address,
            "school_name": self.school_name,
            "board": self.board,
            "class_name": self.class_name,
            "payment_status": self.payment_status,
            "payment_reference": self.payment_reference,
            "roll_number": self.roll_number,
            "exam_center": self.exam_center,
            "result_status": self.result_status.value if self.result_status else None,
            "document_url": self.document_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
