from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from cellchurch.policy.roles import Assignment, assignment_from_record


@dataclass(frozen=True)
class ResourceScope:
    """
    접근 대상 리소스에 붙어 있는 (network_id, cell_id) 범위입니다.
    셀은 상위 네트워크를, 모임은 셀과 그 셀의 네트워크를 함께 가집니다.
    """
    network_id: Optional[int] = None
    cell_id: Optional[int] = None


@dataclass(frozen=True)
class AuthorizationContext:
    """
    한 요청 동안 사용되는 불변 인가 컨텍스트입니다.
    세션(토큰)에서 한 번 만들어진 뒤, 정책 함수에 명시적으로 전달됩니다.
    """
    user_id: Optional[int] = None
    assignments: FrozenSet[Assignment] = field(default_factory=frozenset)

    @classmethod
    def anonymous(cls) -> "AuthorizationContext":
        return cls()

    @classmethod
    def from_records(cls, user_id: Optional[int], records: Iterable) -> "AuthorizationContext":
        """
        역할 배정 레코드 목록으로 컨텍스트를 생성합니다.

        Args:
            user_id: 현재 사용자 ID.
            records: (role, network_id, cell_id) 튜플, 같은 키를 가진 딕셔너리,
                     또는 role/network_id/cell_id 속성을 가진 ORM 객체의 목록.
        """
        assignments = frozenset(_to_assignment(record) for record in records)
        return cls(user_id=user_id, assignments=assignments)


def _to_assignment(record) -> Assignment:
    if isinstance(record, Mapping):
        return assignment_from_record(record["role"], record.get("network_id"), record.get("cell_id"))
    if isinstance(record, tuple):
        return assignment_from_record(*record)
    return assignment_from_record(record.role, record.network_id, record.cell_id)
