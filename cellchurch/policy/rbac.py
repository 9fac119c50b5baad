"""
역할 기반 접근 제어(RBAC) 정책 함수 모음입니다.

모든 함수는 부수 효과가 없는 순수 함수이며, 권한이 없을 때 예외 대신 False
(또는 빈 집합)를 반환합니다. 변경 작업에서 즉시 실패가 필요할 때만
assert_permission()으로 AuthorizationError를 발생시킵니다.
"""
from typing import FrozenSet, Iterable, Optional, Union

from cellchurch.policy.context import AuthorizationContext, ResourceScope
from cellchurch.policy.roles import Role, parse_role
from cellchurch.services.exceptions import AuthorizationError

__all__ = [
    "ALL", "REPORT_SCOPES", "AuthorizationError",
    "has_role", "has_any_role", "is_admin", "is_network_leader_of", "is_cell_leader_of",
    "can_access_network", "can_access_cell", "can_access",
    "can_manage_users", "can_manage_events", "can_manage_announcements", "can_manage_networks",
    "can_manage_cells", "can_log_meeting", "can_assign_members", "can_view_reports",
    "get_accessible_cells", "get_accessible_networks", "assert_permission",
]

# 관리자에게 반환되는 '전체' 표식. 실제 목록은 호출자가 전체 목록으로 해석합니다.
ALL = "*"

REPORT_SCOPES = ("global", "network", "cell")

AccessibleIds = Union[str, FrozenSet[int]]


# --------------------------------------------------------------------------
## 역할 확인
# --------------------------------------------------------------------------

def has_role(ctx: AuthorizationContext, role) -> bool:
    """범위와 관계없이 해당 역할의 배정이 하나라도 있으면 True."""
    role = parse_role(role)
    return any(a.role is role for a in ctx.assignments)

def has_any_role(ctx: AuthorizationContext, roles: Iterable) -> bool:
    return any(has_role(ctx, role) for role in roles)

def is_admin(ctx: AuthorizationContext) -> bool:
    return has_role(ctx, Role.ADMIN)

def is_network_leader_of(ctx: AuthorizationContext, network_id: Optional[int] = None) -> bool:
    """
    관리자이거나, 해당 네트워크의 NETWORK_LEADER 배정이 있으면 True.
    network_id를 생략하면 NETWORK_LEADER 배정이 하나라도 있는지만 확인합니다. (메뉴 노출용)
    """
    if is_admin(ctx):
        return True
    leaders = [a for a in ctx.assignments if a.role is Role.NETWORK_LEADER]
    if network_id is None:
        return bool(leaders)
    return any(a.network_id == network_id for a in leaders)

def is_cell_leader_of(ctx: AuthorizationContext, cell_id: Optional[int] = None) -> bool:
    """관리자이거나, 해당 셀의 CELL_LEADER 배정이 있으면 True. cell_id 생략 시 배정 존재 여부만 확인."""
    if is_admin(ctx):
        return True
    leaders = [a for a in ctx.assignments if a.role is Role.CELL_LEADER]
    if cell_id is None:
        return bool(leaders)
    return any(a.cell_id == cell_id for a in leaders)


# --------------------------------------------------------------------------
## 리소스 접근
# --------------------------------------------------------------------------

def can_access_network(ctx: AuthorizationContext, network_id: Optional[int]) -> bool:
    if network_id is None:
        return False
    if is_network_leader_of(ctx, network_id):
        return True
    return any(a.network_id == network_id for a in ctx.assignments)

def can_access_cell(ctx: AuthorizationContext, cell_id: Optional[int], network_id: Optional[int] = None) -> bool:
    """
    셀 접근 권한을 판단합니다.

    관리자, 해당 셀의 리더, 또는 cell_id 범위의 배정이 있는 사용자는 접근할 수 있습니다.
    호출자가 셀의 상위 network_id를 함께 넘기면, 그 네트워크의 리더에게도 접근을 허용합니다.
    network_id 없이 호출하면 네트워크 리더 권한은 셀로 상속되지 않습니다.
    """
    if cell_id is None:
        return False
    if is_cell_leader_of(ctx, cell_id):
        return True
    if any(a.cell_id == cell_id for a in ctx.assignments):
        return True
    if network_id is not None:
        return any(a.role is Role.NETWORK_LEADER and a.network_id == network_id for a in ctx.assignments)
    return False

def can_access(ctx: AuthorizationContext, scope: ResourceScope) -> bool:
    """리소스 범위 (network_id, cell_id) 전체를 기준으로 접근 권한을 판단합니다."""
    if scope.cell_id is not None:
        return can_access_cell(ctx, scope.cell_id, scope.network_id)
    if scope.network_id is not None:
        return can_access_network(ctx, scope.network_id)
    return is_admin(ctx)


# --------------------------------------------------------------------------
## 기능별 권한
# --------------------------------------------------------------------------

def can_manage_users(ctx: AuthorizationContext) -> bool:
    return is_admin(ctx)

def can_manage_events(ctx: AuthorizationContext) -> bool:
    return is_admin(ctx)

def can_manage_announcements(ctx: AuthorizationContext) -> bool:
    return is_admin(ctx)

def can_manage_networks(ctx: AuthorizationContext) -> bool:
    return is_admin(ctx)

def can_manage_cells(ctx: AuthorizationContext, network_id: Optional[int] = None) -> bool:
    """관리자 또는 (해당) 네트워크의 리더만 셀을 관리할 수 있습니다."""
    return is_network_leader_of(ctx, network_id)

def can_log_meeting(ctx: AuthorizationContext, cell_id: Optional[int], network_id: Optional[int] = None) -> bool:
    return can_access_cell(ctx, cell_id, network_id)

def can_assign_members(ctx: AuthorizationContext, cell_id: Optional[int], network_id: Optional[int] = None) -> bool:
    return can_access_cell(ctx, cell_id, network_id)

def can_view_reports(ctx: AuthorizationContext, scope: str, resource_id: Optional[int] = None,
                     network_id: Optional[int] = None) -> bool:
    """
    보고서 열람 권한을 판단합니다.

    Args:
        scope: 'global', 'network', 'cell' 중 하나.
        resource_id: network/cell 범위일 때 대상 ID. 없으면 False를 반환합니다.
        network_id: cell 범위일 때 셀의 상위 네트워크 ID. 주어지면 해당 네트워크의 리더도 열람할 수 있습니다.

    Raises:
        ValueError: 알 수 없는 scope일 때.
    """
    if scope not in REPORT_SCOPES:
        raise ValueError(f"Unknown report scope '{scope}'.")
    if scope == "global":
        return is_admin(ctx)
    if resource_id is None:
        return False
    if scope == "network":
        return can_access_network(ctx, resource_id)
    return can_access_cell(ctx, resource_id, network_id)


# --------------------------------------------------------------------------
## 접근 가능 범위
# --------------------------------------------------------------------------

def get_accessible_cells(ctx: AuthorizationContext) -> AccessibleIds:
    """관리자는 ALL, 그 외에는 배정에 기록된 cell_id 집합을 반환합니다."""
    if is_admin(ctx):
        return ALL
    return frozenset(a.cell_id for a in ctx.assignments if a.cell_id is not None)

def get_accessible_networks(ctx: AuthorizationContext) -> AccessibleIds:
    """관리자는 ALL, 그 외에는 배정에 기록된 network_id 집합을 반환합니다."""
    if is_admin(ctx):
        return ALL
    return frozenset(a.network_id for a in ctx.assignments if a.network_id is not None)


def assert_permission(condition: bool, message: str = "Unauthorized") -> None:
    """
    condition이 거짓이면 AuthorizationError를 발생시킵니다.
    데이터 변경 작업처럼 즉시 실패해야 하는 곳에서만 사용합니다.
    """
    if not condition:
        raise AuthorizationError(message)
