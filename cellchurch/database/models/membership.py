from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, func
from sqlalchemy.orm import relationship
from ..database import Base

MembershipType = Enum("MEMBER", "LEADER", name="membership_type")
MembershipStatus = Enum("ACTIVE", "INACTIVE", "SUSPENDED", name="membership_status")

class Membership(Base):
    """
    사용자가 어떤 네트워크/셀에 소속되어 있는지를 기록합니다.
    리더십 권한(RoleAssignment)과는 독립적인 사실(fact)입니다.
    """
    __tablename__ = "memberships"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    network_id = Column(Integer, ForeignKey("networks.id", ondelete="CASCADE"), nullable=True, index=True)
    cell_id = Column(Integer, ForeignKey("cells.id", ondelete="CASCADE"), nullable=True, index=True)
    membership_type = Column(MembershipType, nullable=False, default="MEMBER")
    status = Column(MembershipStatus, nullable=False, default="ACTIVE")
    joined_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="memberships")
