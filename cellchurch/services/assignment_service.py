import logging
from typing import Dict, Any, List, Optional

from cellchurch.database import models
from cellchurch.policy import (
    AuthorizationContext, Role, assert_permission, can_assign_members, can_manage_users, parse_role
)
from cellchurch.repositories.interfaces import (
    IUserRepository, INetworkRepository, ICellRepository, IRoleAssignmentRepository, IMembershipRepository
)
from cellchurch.services.exceptions import (
    UserNotFoundError, NetworkNotFoundError, CellNotFoundError, InvalidAssignmentError
)

logger = logging.getLogger(__name__)

LEADER_ROLES = (Role.NETWORK_LEADER, Role.CELL_LEADER)


class AssignmentService:
    """사용자의 역할(권한) 배정과 네트워크/셀 소속을 관리하는 서비스입니다."""

    def __init__(self, user_repo: IUserRepository, network_repo: INetworkRepository, cell_repo: ICellRepository,
                 role_repo: IRoleAssignmentRepository, membership_repo: IMembershipRepository):
        self.user_repo = user_repo
        self.network_repo = network_repo
        self.cell_repo = cell_repo
        self.role_repo = role_repo
        self.membership_repo = membership_repo

    def reconcile_user_role(self, ctx: AuthorizationContext, user_id: int, role=None,
                            network_id: Optional[int] = None, cell_id: Optional[int] = None) -> Dict[str, Any]:
        """
        사용자의 역할 배정을 새 선택값으로 교체합니다.

        기존 배정은 모두 삭제되고, 역할이 ADMIN/NETWORK_LEADER/CELL_LEADER이면 정확히 한 건이 새로 기록됩니다.
        role이 None 또는 MEMBER이면 권한 배정 없이 소속만 기록됩니다.
        network_id/cell_id가 주어지면 권한과 별개로 소속(Membership)도 같은 트랜잭션에서 기록됩니다.
        같은 값으로 여러 번 호출해도 결과는 같습니다.

        Args:
            ctx: 요청자의 인가 컨텍스트. 관리자여야 합니다.
            user_id: 대상 사용자 ID.
            role: 새 역할 (문자열 또는 Role). None, 'none', 'MEMBER'는 권한 없음으로 처리합니다.
            network_id: NETWORK_LEADER의 대상 네트워크 또는 소속 네트워크.
            cell_id: CELL_LEADER의 대상 셀 또는 소속 셀.

        Returns:
            사용자 ID와 교체 후 배정 목록을 담은 딕셔너리.

        Raises:
            AuthorizationError: 관리자가 아닐 때.
            UserNotFoundError: 사용자가 없거나 삭제되었을 때.
            NetworkNotFoundError / CellNotFoundError: 범위로 지정한 네트워크/셀이 없을 때.
            InvalidAssignmentError: 역할에 필요한 범위가 없거나 서로 맞지 않을 때.
        """
        assert_permission(can_manage_users(ctx), "Only administrators can change user roles.")
        user = self.user_repo.find_by_id(user_id)
        if not user or user.is_deleted:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")

        role = self._normalize_role(role)
        cell = self._find_cell(cell_id) if cell_id is not None else None
        if cell is not None:
            if network_id is not None and network_id != cell.network_id:
                raise InvalidAssignmentError(f"Cell '{cell.id}' does not belong to network '{network_id}'.")
            network_id = cell.network_id
        elif network_id is not None and not self.network_repo.find_by_id(network_id):
            raise NetworkNotFoundError(f"Network with id '{network_id}' not found.")

        if role is Role.NETWORK_LEADER and network_id is None:
            raise InvalidAssignmentError("NETWORK_LEADER requires a network.")
        if role is Role.CELL_LEADER and cell is None:
            raise InvalidAssignmentError("CELL_LEADER requires a cell.")

        # 권한 행에는 역할에 의미 있는 범위만 남깁니다.
        row_network_id = network_id if role in LEADER_ROLES else None
        row_cell_id = cell.id if role is Role.CELL_LEADER else None

        membership = None
        if network_id is not None:
            membership = {
                "network_id": network_id,
                "cell_id": cell.id if cell is not None else None,
                "membership_type": "LEADER" if role in LEADER_ROLES else "MEMBER",
            }

        rows = self.role_repo.replace_for_user(user.id, role, row_network_id, row_cell_id, membership=membership)
        logger.info("Role of user %s reconciled to %s by %s", user.id, role.value if role else None, ctx.user_id)
        return {"user_id": user.id, "assignments": [_assignment_to_dict(r) for r in rows]}

    def list_user_assignments(self, ctx: AuthorizationContext, user_id: int) -> List[Dict[str, Any]]:
        """사용자의 역할 배정 목록을 조회합니다. 관리자 또는 본인만 조회할 수 있습니다."""
        assert_permission(can_manage_users(ctx) or ctx.user_id == user_id, "Not allowed to view these assignments.")
        return [_assignment_to_dict(r) for r in self.role_repo.list_for_user(user_id)]

    def assign_membership(self, ctx: AuthorizationContext, user_id: int, cell_id: int,
                          network_id: Optional[int] = None) -> Dict[str, Any]:
        """
        사용자를 셀(과 그 상위 네트워크)에 소속시킵니다. 권한 배정은 바뀌지 않습니다.

        Raises:
            AuthorizationError: 요청자가 해당 셀에 접근할 수 없을 때.
            UserNotFoundError / CellNotFoundError: 대상이 없을 때.
            InvalidAssignmentError: network_id가 셀의 네트워크와 다를 때.
        """
        cell = self._find_cell(cell_id)
        if network_id is not None and network_id != cell.network_id:
            raise InvalidAssignmentError(f"Cell '{cell.id}' does not belong to network '{network_id}'.")
        assert_permission(can_assign_members(ctx, cell.id, cell.network_id),
                          "Insufficient permissions to assign user.")

        user = self.user_repo.find_by_id(user_id)
        if not user or user.is_deleted:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")

        membership = self.membership_repo.upsert(user.id, cell.network_id, cell.id)
        return _membership_to_dict(membership)

    def remove_membership(self, ctx: AuthorizationContext, user_id: int, cell_id: int) -> bool:
        """사용자의 셀 소속을 비활성화합니다. 변경된 소속이 없으면 False를 반환합니다."""
        cell = self._find_cell(cell_id)
        assert_permission(can_assign_members(ctx, cell.id, cell.network_id),
                          "Insufficient permissions to remove user.")
        return self.membership_repo.deactivate(user_id, cell.network_id, cell.id) > 0

    def list_memberships(self, ctx: AuthorizationContext, user_id: int) -> List[Dict[str, Any]]:
        assert_permission(can_manage_users(ctx) or ctx.user_id == user_id, "Not allowed to view these memberships.")
        return [_membership_to_dict(m) for m in self.membership_repo.list_for_user(user_id)]

    def deduplicate_role_assignments(self) -> List[Dict[str, Any]]:
        """
        (user, role, 범위)가 같은 중복 배정을 정리합니다. 가장 최근 배정만 남기고 나머지는 삭제합니다.
        서로 다른 셀/네트워크의 리더 배정은 중복이 아닙니다.
        원자적 교체 이전에 쌓인 데이터를 정리하기 위한 일회성 유지보수 작업입니다.

        Returns:
            [{'user_id': 1, 'role': 'CELL_LEADER', 'network_id': 2, 'cell_id': 5, 'kept': 7, 'deleted': [3]}] 형태의 정리 결과.
        """
        report = []
        for duplicate in self.role_repo.find_duplicates():
            ids = duplicate["ids"]
            to_delete, keep_id = ids[:-1], ids[-1]
            self.role_repo.delete_by_ids(to_delete)
            report.append({
                "user_id": duplicate["user_id"],
                "role": Role(duplicate["role"]).value,
                "network_id": duplicate["network_id"],
                "cell_id": duplicate["cell_id"],
                "kept": keep_id,
                "deleted": to_delete,
            })
        if report:
            logger.warning("Removed duplicate role assignments for %d (user, role, scope) groups", len(report))
        return report

    def _find_cell(self, cell_id: int) -> models.Cell:
        cell = self.cell_repo.find_by_id(cell_id)
        if not cell:
            raise CellNotFoundError(f"Cell with id '{cell_id}' not found.")
        return cell

    @staticmethod
    def _normalize_role(role) -> Optional[Role]:
        if role is None or (isinstance(role, str) and role.strip().lower() in ("", "none")):
            return None
        try:
            role = parse_role(role)
        except ValueError as e:
            raise InvalidAssignmentError(str(e)) from e
        return None if role is Role.MEMBER else role


def _assignment_to_dict(row: models.RoleAssignment) -> Dict[str, Any]:
    return {
        "id": row.id,
        "role": Role(row.role).value,
        "network_id": row.network_id,
        "cell_id": row.cell_id,
    }

def _membership_to_dict(membership: models.Membership) -> Dict[str, Any]:
    return {
        "id": membership.id,
        "user_id": membership.user_id,
        "network_id": membership.network_id,
        "cell_id": membership.cell_id,
        "membership_type": membership.membership_type,
        "status": membership.status,
    }
