# gyansetu/database/models/user.py
from sqlalchemy import Column, Integer, String, Enum, DateTime
from datetime import datetime
from ..base import Base
import enum

class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"

class User(Base):
    __tablename__ = "users"
    
    account_id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)  # always lowercase
    passwd = Column(String, nullable=False)  # passlib hash
    role = Column(Enum(UserRole), nullable=False, default=UserRole.USER)
    course = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def snapshot(self) -> dict:
        """Public view of the account, stored in sessions and returned by the API"""
        return {
            "id": self.account_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "course": self.course,
        }
