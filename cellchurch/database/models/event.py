from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func
from ..database import Base

class Event(Base):
    """교회 전체 행사입니다. 관리자만 생성할 수 있습니다."""
    __tablename__ = "events"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)
    location = Column(String)
    capacity = Column(Integer)
    allow_registration = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
