# gyansetu/database/models/system_setting.py
from sqlalchemy import Column, Integer, String
from ..base import Base

class SystemSetting(Base):
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, nullable=False, index=True)
    value = Column(String, nullable=True)
