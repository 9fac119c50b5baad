from typing import List, Optional
from sqlalchemy.orm import Session
from cellchurch.database import models
from cellchurch.repositories.interfaces import IMembershipRepository

def _scope_filter(query, network_id: Optional[int], cell_id: Optional[int]):
    # 셀 소속은 (user, cell), 네트워크 소속은 (user, network) 단위로 하나만 활성화됩니다.
    if cell_id is not None:
        return query.filter(models.Membership.cell_id == cell_id)
    return query.filter(models.Membership.cell_id.is_(None), models.Membership.network_id == network_id)

def apply_membership(db: Session, user_id: int, network_id: Optional[int], cell_id: Optional[int],
                     membership_type: str = "MEMBER") -> models.Membership:
    """커밋 없이 소속을 기록합니다. 호출자의 트랜잭션에 포함됩니다."""
    query = db.query(models.Membership).filter(
        models.Membership.user_id == user_id,
        models.Membership.status == "ACTIVE"
    )
    membership = _scope_filter(query, network_id, cell_id).first()
    if membership is None:
        membership = models.Membership(user_id=user_id, network_id=network_id, cell_id=cell_id, status="ACTIVE")
        db.add(membership)
    membership.network_id = network_id
    membership.membership_type = membership_type
    return membership

def retire_memberships(db: Session, user_id: int, keep_id: Optional[int] = None, demote_only: bool = False) -> int:
    """
    커밋 없이 사용자의 다른 활성 소속을 정리합니다.

    keep_id를 제외한 활성 소속을 비활성화하고, demote_only이면 비활성화 대신
    LEADER 소속을 MEMBER로 되돌립니다.
    """
    query = db.query(models.Membership).filter(
        models.Membership.user_id == user_id,
        models.Membership.status == "ACTIVE"
    )
    if demote_only:
        return query.filter(models.Membership.membership_type == "LEADER").update(
            {"membership_type": "MEMBER"}, synchronize_session="fetch"
        )
    if keep_id is not None:
        query = query.filter(models.Membership.id != keep_id)
    return query.update({"status": "INACTIVE"}, synchronize_session="fetch")

class SqlalchemyMembershipRepository(IMembershipRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def list_for_user(self, user_id: int, active_only: bool = True) -> List[models.Membership]:
        query = self.db.query(models.Membership).filter(models.Membership.user_id == user_id)
        if active_only:
            query = query.filter(models.Membership.status == "ACTIVE")
        return query.order_by(models.Membership.id.asc()).all()

    def upsert(self, user_id: int, network_id: Optional[int], cell_id: Optional[int],
               membership_type: str = "MEMBER") -> models.Membership:
        try:
            membership = apply_membership(self.db, user_id, network_id, cell_id, membership_type)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(membership)
        return membership

    def deactivate(self, user_id: int, network_id: Optional[int], cell_id: Optional[int]) -> int:
        query = self.db.query(models.Membership).filter(
            models.Membership.user_id == user_id,
            models.Membership.status == "ACTIVE"
        )
        count = _scope_filter(query, network_id, cell_id).update({"status": "INACTIVE"}, synchronize_session="fetch")
        self.db.commit()
        return count
