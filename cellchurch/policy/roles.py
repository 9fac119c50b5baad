import enum
from dataclasses import dataclass
from typing import Optional, Union

class Role(str, enum.Enum):
    """사용자가 가질 수 있는 권한의 종류입니다."""
    ADMIN = "ADMIN"
    NETWORK_LEADER = "NETWORK_LEADER"
    CELL_LEADER = "CELL_LEADER"
    MEMBER = "MEMBER"


@dataclass(frozen=True)
class Admin:
    """범위 제한이 없는 전체 관리자 권한."""
    role = Role.ADMIN
    network_id = None
    cell_id = None


@dataclass(frozen=True)
class NetworkLeader:
    """
    네트워크 리더 권한.
    network_id가 None이면 특정 네트워크에 배정되지 않은 권한만 가진 상태입니다.
    """
    network_id: Optional[int] = None
    role = Role.NETWORK_LEADER
    cell_id = None


@dataclass(frozen=True)
class CellLeader:
    """셀 리더 권한. cell_id가 None이면 특정 셀에 배정되지 않은 상태입니다."""
    cell_id: Optional[int] = None
    role = Role.CELL_LEADER
    network_id = None


@dataclass(frozen=True)
class Member:
    """일반 교인. 셀/네트워크 범위가 기록된 행일 수도 있습니다."""
    network_id: Optional[int] = None
    cell_id: Optional[int] = None
    role = Role.MEMBER


Assignment = Union[Admin, NetworkLeader, CellLeader, Member]


def parse_role(value) -> Role:
    """문자열 또는 Role 값을 Role로 변환합니다. 알 수 없는 값이면 ValueError를 발생시킵니다."""
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).upper())
    except ValueError:
        raise ValueError(f"Unknown role '{value}'.") from None


def assignment_from_record(role, network_id=None, cell_id=None) -> Assignment:
    """
    (role, network_id, cell_id) 형태의 원시 레코드를 역할별 배정 타입으로 변환합니다.
    해당 역할에 의미 없는 범위 값은 버립니다. (예: ADMIN 행의 network_id)

    Raises:
        ValueError: 알 수 없는 역할일 때.
    """
    role = parse_role(role)
    if role is Role.ADMIN:
        return Admin()
    if role is Role.NETWORK_LEADER:
        return NetworkLeader(network_id=network_id)
    if role is Role.CELL_LEADER:
        return CellLeader(cell_id=cell_id)
    return Member(network_id=network_id, cell_id=cell_id)
