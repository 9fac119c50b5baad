from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
from cellchurch.database import models
from cellchurch.policy.roles import Role

class IRoleAssignmentRepository(ABC):
    @abstractmethod
    def list_for_user(self, user_id: int) -> List[models.RoleAssignment]:
        """사용자의 모든 역할 배정을 조회합니다."""
        pass

    @abstractmethod
    def replace_for_user(self, user_id: int, role: Optional[Role], network_id: Optional[int] = None,
                         cell_id: Optional[int] = None,
                         membership: Optional[Dict[str, Any]] = None) -> List[models.RoleAssignment]:
        """
        사용자의 역할 배정을 새 값으로 통째로 교체합니다.

        사용자 행을 잠근 뒤 기존 배정을 모두 삭제하고, role이 주어지면 정확히 한 건을 삽입합니다.
        membership이 주어지면 같은 트랜잭션에서 소속 정보도 기록합니다.
        모든 작업은 하나의 트랜잭션으로 커밋되며, 실패하면 롤백됩니다.

        Args:
            user_id: 대상 사용자 ID.
            role: 새 역할. None이면 권한 배정 없이 기존 배정만 삭제합니다.
            network_id: NETWORK_LEADER/CELL_LEADER 배정의 네트워크 범위.
            cell_id: CELL_LEADER 배정의 셀 범위.
            membership: {'network_id': ..., 'cell_id': ..., 'membership_type': ...} 형태의 소속 정보.

        Returns:
            교체 후 사용자의 역할 배정 목록.
        """
        pass

    @abstractmethod
    def replace_scope_leader(self, role: Role, user_id: Optional[int], network_id: Optional[int] = None,
                             cell_id: Optional[int] = None) -> None:
        """
        특정 네트워크(또는 셀)의 리더 배정을 한 트랜잭션에서 교체합니다.
        대상 셀/네트워크 행을 잠가 같은 범위에 대한 동시 교체를 직렬화합니다.
        user_id가 None이면 해당 범위의 리더 배정만 삭제합니다.
        """
        pass

    @abstractmethod
    def find_duplicates(self) -> List[Dict[str, Any]]:
        """
        (user_id, role, network_id, cell_id) 기준으로 중복된 배정을 찾습니다.
        같은 역할이라도 범위가 다르면 중복이 아닙니다.

        Returns:
            [{'user_id': 1, 'role': Role.CELL_LEADER, 'network_id': 2, 'cell_id': 5, 'ids': [3, 7]}] 형태의 목록.
            ids는 생성 순서(오래된 것부터)로 정렬됩니다.
        """
        pass

    @abstractmethod
    def delete_by_ids(self, assignment_ids: List[int]) -> int:
        """주어진 ID의 배정을 삭제하고 삭제된 행 수를 반환합니다."""
        pass
