from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base

class Cell(Base):
    """
    네트워크에 속한 소그룹입니다. 모임(Meeting)이 기록되는 단위입니다.
    """
    __tablename__ = "cells"
    __table_args__ = (UniqueConstraint("network_id", "name", name="uq_cells_network_name"),)

    id = Column(Integer, primary_key=True, index=True)
    network_id = Column(Integer, ForeignKey("networks.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    location = Column(String)

    network = relationship("Network", back_populates="cells")
    meetings = relationship("Meeting", back_populates="cell", cascade="all, delete-orphan")
