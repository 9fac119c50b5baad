from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from cellchurch.database import models
from cellchurch.policy.roles import Role
from cellchurch.repositories.interfaces import IRoleAssignmentRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_membership_repository import apply_membership, retire_memberships

class SqlalchemyRoleAssignmentRepository(IRoleAssignmentRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def list_for_user(self, user_id: int) -> List[models.RoleAssignment]:
        return self.db.query(models.RoleAssignment).filter(
            models.RoleAssignment.user_id == user_id
        ).order_by(models.RoleAssignment.id.asc()).all()

    def replace_for_user(self, user_id: int, role: Optional[Role], network_id: Optional[int] = None,
                         cell_id: Optional[int] = None,
                         membership: Optional[Dict[str, Any]] = None) -> List[models.RoleAssignment]:
        try:
            # 같은 사용자에 대한 동시 교체 요청은 사용자 행 잠금으로 직렬화됩니다.
            self.db.query(models.User).filter(models.User.id == user_id).with_for_update().one()
            self.db.query(models.RoleAssignment).filter(
                models.RoleAssignment.user_id == user_id
            ).delete(synchronize_session="fetch")
            if role is not None:
                self.db.add(models.RoleAssignment(user_id=user_id, role=role, network_id=network_id, cell_id=cell_id))
            if membership is not None:
                kept = apply_membership(self.db, user_id, **membership)
                self.db.flush()
                retire_memberships(self.db, user_id, keep_id=kept.id)
            else:
                retire_memberships(self.db, user_id, demote_only=True)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self.list_for_user(user_id)

    def replace_scope_leader(self, role: Role, user_id: Optional[int], network_id: Optional[int] = None,
                             cell_id: Optional[int] = None) -> None:
        try:
            # 같은 범위의 리더 교체는 대상 셀/네트워크 행 잠금으로 직렬화됩니다.
            if role is Role.CELL_LEADER:
                self.db.query(models.Cell).filter(models.Cell.id == cell_id).with_for_update().one()
                scope = models.RoleAssignment.cell_id == cell_id
            else:
                self.db.query(models.Network).filter(models.Network.id == network_id).with_for_update().one()
                scope = models.RoleAssignment.network_id == network_id
            self.db.query(models.RoleAssignment).filter(
                models.RoleAssignment.role == role, scope
            ).delete(synchronize_session="fetch")
            if user_id is not None:
                self.db.add(models.RoleAssignment(user_id=user_id, role=role, network_id=network_id, cell_id=cell_id))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def find_duplicates(self) -> List[Dict[str, Any]]:
        rows = self.db.query(models.RoleAssignment).order_by(
            models.RoleAssignment.user_id.asc(),
            models.RoleAssignment.created_at.asc(),
            models.RoleAssignment.id.asc()
        ).all()

        # 범위가 다른 배정(예: 두 셀의 리더)은 중복이 아닙니다.
        groups: Dict[tuple, List[int]] = {}
        for row in rows:
            groups.setdefault((row.user_id, row.role, row.network_id, row.cell_id), []).append(row.id)

        return [
            {"user_id": user_id, "role": role, "network_id": network_id, "cell_id": cell_id, "ids": ids}
            for (user_id, role, network_id, cell_id), ids in groups.items()
            if len(ids) > 1
        ]

    def delete_by_ids(self, assignment_ids: List[int]) -> int:
        if not assignment_ids:
            return 0
        count = self.db.query(models.RoleAssignment).filter(
            models.RoleAssignment.id.in_(assignment_ids)
        ).delete(synchronize_session="fetch")
        self.db.commit()
        return count
