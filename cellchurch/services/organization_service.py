import logging
from typing import Dict, Any, List, Optional

from cellchurch.database import models
from cellchurch.policy import (
    ALL, AuthorizationContext, Role, assert_permission, can_access_cell, can_access_network,
    can_manage_cells, can_manage_networks, get_accessible_networks
)
from cellchurch.repositories.interfaces import (
    IUserRepository, INetworkRepository, ICellRepository, IRoleAssignmentRepository
)
from cellchurch.services.exceptions import (
    NetworkNotFoundError, CellNotFoundError, UserNotFoundError,
    NetworkCreationError, CellCreationError, NetworkNotEmptyError
)

logger = logging.getLogger(__name__)


class OrganizationService:
    """네트워크와 셀, 그리고 각 리더 지정을 관리하는 서비스입니다."""

    def __init__(self, network_repo: INetworkRepository, cell_repo: ICellRepository,
                 role_repo: IRoleAssignmentRepository, user_repo: IUserRepository):
        self.network_repo = network_repo
        self.cell_repo = cell_repo
        self.role_repo = role_repo
        self.user_repo = user_repo

    # ------------------------------------------------------------------
    # 네트워크
    # ------------------------------------------------------------------

    def create_network(self, ctx: AuthorizationContext, name: str, description: str = None,
                       location: str = None, leader_user_id: Optional[int] = None) -> Dict[str, Any]:
        """
        새로운 네트워크를 생성하고, 리더가 지정되면 NETWORK_LEADER 배정을 추가합니다.

        Raises:
            AuthorizationError: 관리자가 아닐 때.
            NetworkCreationError: 이름이 비어 있거나 이미 존재할 때.
            UserNotFoundError: 리더로 지정한 사용자가 없을 때.
        """
        assert_permission(can_manage_networks(ctx), "Only administrators can create networks.")
        if not name:
            raise NetworkCreationError("Network name is required.")
        if self.network_repo.find_by_name(name):
            raise NetworkCreationError(f"Network with name '{name}' already exists.")
        if leader_user_id is not None:
            self._find_active_user(leader_user_id)

        network = self.network_repo.create(models.Network(name=name, description=description, location=location))
        if leader_user_id is not None:
            self.role_repo.replace_scope_leader(Role.NETWORK_LEADER, leader_user_id, network_id=network.id)
        logger.info("Network %s created by %s", network.id, ctx.user_id)
        return _network_to_dict(network)

    def list_networks(self, ctx: AuthorizationContext) -> List[Dict[str, Any]]:
        """요청자가 접근할 수 있는 네트워크 목록을 조회합니다."""
        accessible = get_accessible_networks(ctx)
        networks = self.network_repo.list_all()
        if accessible != ALL:
            networks = [n for n in networks if n.id in accessible]
        return [_network_to_dict(n) for n in networks]

    def get_network(self, ctx: AuthorizationContext, network_id: int) -> Dict[str, Any]:
        network = self._find_network(network_id)
        assert_permission(can_access_network(ctx, network.id), "Not allowed to view this network.")
        return _network_to_dict(network)

    def set_network_leader(self, ctx: AuthorizationContext, network_id: int, user_id: Optional[int]) -> bool:
        """네트워크의 리더를 교체합니다. user_id가 None이면 리더를 해제합니다."""
        assert_permission(can_manage_networks(ctx), "Only administrators can assign network leaders.")
        network = self._find_network(network_id)
        if user_id is not None:
            self._find_active_user(user_id)
        self.role_repo.replace_scope_leader(Role.NETWORK_LEADER, user_id, network_id=network.id)
        return True

    def delete_network(self, ctx: AuthorizationContext, network_id: int) -> bool:
        """
        네트워크를 삭제합니다. 단, 셀이 하나도 없는 네트워크만 삭제할 수 있습니다.

        Raises:
            NetworkNotFoundError: 해당 ID의 네트워크를 찾을 수 없을 때.
            NetworkNotEmptyError: 네트워크에 셀이 남아 있을 때.
        """
        assert_permission(can_manage_networks(ctx), "Only administrators can delete networks.")
        network = self._find_network(network_id)
        if self.network_repo.count_cells(network.id) > 0:
            raise NetworkNotEmptyError(
                f"Network '{network.id}' still has cell groups. Please remove all cells first."
            )
        self.network_repo.delete(network)
        logger.info("Network %s deleted by %s", network_id, ctx.user_id)
        return True

    # ------------------------------------------------------------------
    # 셀
    # ------------------------------------------------------------------

    def create_cell(self, ctx: AuthorizationContext, network_id: int, name: str, description: str = None,
                    location: str = None, leader_user_id: Optional[int] = None) -> Dict[str, Any]:
        """
        네트워크 안에 셀을 생성합니다. 관리자 또는 해당 네트워크의 리더만 생성할 수 있습니다.

        Raises:
            NetworkNotFoundError: 네트워크가 없을 때.
            CellCreationError: 이름이 비어 있거나 같은 네트워크에 같은 이름의 셀이 있을 때.
        """
        network = self._find_network(network_id)
        assert_permission(can_manage_cells(ctx, network.id), "Not allowed to manage cells of this network.")
        if not name:
            raise CellCreationError("Cell name is required.")
        if self.cell_repo.find_by_name(network.id, name):
            raise CellCreationError(f"Cell '{name}' already exists in network '{network.id}'.")
        if leader_user_id is not None:
            self._find_active_user(leader_user_id)

        cell = self.cell_repo.create(models.Cell(
            network_id=network.id, name=name, description=description, location=location
        ))
        if leader_user_id is not None:
            self.role_repo.replace_scope_leader(Role.CELL_LEADER, leader_user_id, network_id=network.id, cell_id=cell.id)
        logger.info("Cell %s created in network %s by %s", cell.id, network.id, ctx.user_id)
        return _cell_to_dict(cell)

    def list_cells(self, ctx: AuthorizationContext, network_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """요청자가 접근할 수 있는 셀 목록을 조회합니다. 네트워크 리더는 자기 네트워크의 셀을 모두 봅니다."""
        if network_id is not None:
            cells = self.cell_repo.list_by_network(network_id)
        else:
            cells = self.cell_repo.list_all()
        return [_cell_to_dict(c) for c in cells if can_access_cell(ctx, c.id, c.network_id)]

    def get_cell(self, ctx: AuthorizationContext, cell_id: int) -> Dict[str, Any]:
        cell = self._find_cell(cell_id)
        assert_permission(can_access_cell(ctx, cell.id, cell.network_id), "Not allowed to view this cell.")
        return _cell_to_dict(cell)

    def set_cell_leader(self, ctx: AuthorizationContext, cell_id: int, user_id: Optional[int]) -> bool:
        """셀의 리더를 교체합니다. user_id가 None이면 리더를 해제합니다."""
        cell = self._find_cell(cell_id)
        assert_permission(can_manage_cells(ctx, cell.network_id), "Not allowed to manage cells of this network.")
        if user_id is not None:
            self._find_active_user(user_id)
        self.role_repo.replace_scope_leader(Role.CELL_LEADER, user_id, network_id=cell.network_id, cell_id=cell.id)
        return True

    def delete_cell(self, ctx: AuthorizationContext, cell_id: int) -> bool:
        """셀과 해당 셀의 리더 배정을 삭제합니다."""
        cell = self._find_cell(cell_id)
        assert_permission(can_manage_cells(ctx, cell.network_id), "Not allowed to manage cells of this network.")
        self.cell_repo.delete(cell)
        logger.info("Cell %s deleted by %s", cell_id, ctx.user_id)
        return True

    def _find_network(self, network_id: int) -> models.Network:
        network = self.network_repo.find_by_id(network_id)
        if not network:
            raise NetworkNotFoundError(f"Network with id '{network_id}' not found.")
        return network

    def _find_cell(self, cell_id: int) -> models.Cell:
        cell = self.cell_repo.find_by_id(cell_id)
        if not cell:
            raise CellNotFoundError(f"Cell with id '{cell_id}' not found.")
        return cell

    def _find_active_user(self, user_id: int) -> models.User:
        user = self.user_repo.find_by_id(user_id)
        if not user or user.is_deleted:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        return user


def _network_to_dict(network: models.Network) -> Dict[str, Any]:
    return {
        "id": network.id,
        "name": network.name,
        "description": network.description,
        "location": network.location,
    }

def _cell_to_dict(cell: models.Cell) -> Dict[str, Any]:
    return {
        "id": cell.id,
        "network_id": cell.network_id,
        "name": cell.name,
        "description": cell.description,
        "location": cell.location,
    }
