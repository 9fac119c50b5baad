from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.orm import relationship
from ..database import Base

class Meeting(Base):
    """셀 모임 기록입니다."""
    __tablename__ = "meetings"
    id = Column(Integer, primary_key=True, index=True)
    cell_id = Column(Integer, ForeignKey("cells.id", ondelete="CASCADE"), nullable=False, index=True)
    leader_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    occurred_at = Column(DateTime, nullable=False)
    notes = Column(Text)
    attendance_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())

    cell = relationship("Cell", back_populates="meetings")
