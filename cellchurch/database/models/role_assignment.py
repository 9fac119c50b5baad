from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, func
from sqlalchemy.orm import relationship
from ..database import Base
from cellchurch.policy.roles import Role

class RoleAssignment(Base):
    """
    사용자에게 부여된 권한(capability) 한 건을 나타냅니다.
    network_id는 NETWORK_LEADER, cell_id는 CELL_LEADER 배정에서만 의미가 있으며,
    ADMIN 배정은 범위 값과 무관하게 전체 권한을 가집니다.
    """
    __tablename__ = "role_assignments"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(Role, name="role"), nullable=False)
    network_id = Column(Integer, ForeignKey("networks.id", ondelete="CASCADE"), nullable=True)
    cell_id = Column(Integer, ForeignKey("cells.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="role_assignments")
