from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship
from ..database import Base

class Network(Base):
    """
    여러 셀(Cell)을 묶는 최상위 조직 단위입니다.
    네트워크 리더는 NETWORK_LEADER 역할 배정으로 지정됩니다.
    """
    __tablename__ = "networks"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text)
    location = Column(String)

    cells = relationship("Cell", back_populates="network", cascade="all, delete-orphan")
