from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from ..database import Base

class User(Base):
    """
    시스템에 로그인할 수 있는 교인 계정을 나타냅니다.
    한 사용자는 여러 개의 역할 배정(RoleAssignment)과 소속(Membership)을 동시에 가질 수 있습니다.
    deleted_at이 설정된 사용자는 소프트 삭제된 상태입니다.
    """
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    role_assignments = relationship("RoleAssignment", back_populates="user", cascade="all, delete-orphan")
    memberships = relationship("Membership", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
