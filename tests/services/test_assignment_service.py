# tests/services/test_assignment_service.py
import pytest
from datetime import datetime
from unittest.mock import MagicMock

from cellchurch.services.assignment_service import AssignmentService
from cellchurch.services.exceptions import *
from cellchurch.repositories.interfaces import (
    IUserRepository, INetworkRepository, ICellRepository, IRoleAssignmentRepository, IMembershipRepository
)
from cellchurch.database import models
from cellchurch.policy import AuthorizationContext, Role

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_user_repo() -> MagicMock:
    """IUserRepository에 대한 모의 객체를 생성합니다."""
    return MagicMock(spec=IUserRepository)

@pytest.fixture
def mock_network_repo() -> MagicMock:
    return MagicMock(spec=INetworkRepository)

@pytest.fixture
def mock_cell_repo() -> MagicMock:
    return MagicMock(spec=ICellRepository)

@pytest.fixture
def mock_role_repo() -> MagicMock:
    """IRoleAssignmentRepository에 대한 모의 객체를 생성합니다."""
    return MagicMock(spec=IRoleAssignmentRepository)

@pytest.fixture
def mock_membership_repo() -> MagicMock:
    return MagicMock(spec=IMembershipRepository)

@pytest.fixture
def assignment_service(mock_user_repo, mock_network_repo, mock_cell_repo, mock_role_repo,
                       mock_membership_repo) -> AssignmentService:
    """테스트에 사용될 AssignmentService 인스턴스를 생성하고, 의존성을 주입합니다."""
    return AssignmentService(mock_user_repo, mock_network_repo, mock_cell_repo, mock_role_repo, mock_membership_repo)

@pytest.fixture
def admin_ctx() -> AuthorizationContext:
    return AuthorizationContext.from_records(1, [("ADMIN", None, None)])

@pytest.fixture
def target_user(mock_user_repo: MagicMock) -> models.User:
    user = models.User(id=10, username="grace", name="Grace")
    mock_user_repo.find_by_id.return_value = user
    return user

# ===================================================================
#  역할 교체(reconcile) 테스트
# ===================================================================
class TestReconcileUserRole:
    def test_cell_leader_takes_network_from_cell(self, assignment_service, admin_ctx, target_user,
                                                 mock_cell_repo, mock_role_repo):
        """CELL_LEADER 배정은 셀의 상위 네트워크를 함께 기록하고, 소속도 LEADER로 기록합니다."""
        # === Arrange ===
        mock_cell_repo.find_by_id.return_value = models.Cell(id=42, network_id=7, name="Hope")
        mock_role_repo.replace_for_user.return_value = [
            models.RoleAssignment(id=1, user_id=10, role=Role.CELL_LEADER, network_id=7, cell_id=42)
        ]

        # === Act ===
        result = assignment_service.reconcile_user_role(admin_ctx, 10, "CELL_LEADER", cell_id=42)

        # === Assert ===
        mock_role_repo.replace_for_user.assert_called_once_with(
            10, Role.CELL_LEADER, 7, 42,
            membership={"network_id": 7, "cell_id": 42, "membership_type": "LEADER"}
        )
        assert result == {
            "user_id": 10,
            "assignments": [{"id": 1, "role": "CELL_LEADER", "network_id": 7, "cell_id": 42}],
        }

    def test_network_leader_requires_existing_network(self, assignment_service, admin_ctx, target_user,
                                                      mock_network_repo, mock_role_repo):
        mock_network_repo.find_by_id.return_value = None

        with pytest.raises(NetworkNotFoundError):
            assignment_service.reconcile_user_role(admin_ctx, 10, "NETWORK_LEADER", network_id=99)
        mock_role_repo.replace_for_user.assert_not_called()

    def test_network_leader_without_network_is_invalid(self, assignment_service, admin_ctx, target_user,
                                                       mock_role_repo):
        with pytest.raises(InvalidAssignmentError, match="requires a network"):
            assignment_service.reconcile_user_role(admin_ctx, 10, Role.NETWORK_LEADER)
        mock_role_repo.replace_for_user.assert_not_called()

    def test_cell_leader_without_cell_is_invalid(self, assignment_service, admin_ctx, target_user,
                                                 mock_network_repo, mock_role_repo):
        mock_network_repo.find_by_id.return_value = models.Network(id=7, name="North")

        with pytest.raises(InvalidAssignmentError, match="requires a cell"):
            assignment_service.reconcile_user_role(admin_ctx, 10, "CELL_LEADER", network_id=7)

    def test_cell_outside_given_network_is_invalid(self, assignment_service, admin_ctx, target_user, mock_cell_repo):
        mock_cell_repo.find_by_id.return_value = models.Cell(id=42, network_id=7, name="Hope")

        with pytest.raises(InvalidAssignmentError, match="does not belong"):
            assignment_service.reconcile_user_role(admin_ctx, 10, "CELL_LEADER", network_id=8, cell_id=42)

    @pytest.mark.parametrize("role", [None, "", "none", "MEMBER", Role.MEMBER])
    def test_plain_member_clears_elevated_roles(self, assignment_service, admin_ctx, target_user,
                                                mock_role_repo, role):
        """MEMBER 또는 빈 값이면 권한 행 없이 기존 배정만 삭제합니다."""
        mock_role_repo.replace_for_user.return_value = []

        result = assignment_service.reconcile_user_role(admin_ctx, 10, role)

        mock_role_repo.replace_for_user.assert_called_once_with(10, None, None, None, membership=None)
        assert result["assignments"] == []

    def test_admin_row_carries_no_scope_but_membership_is_kept(self, assignment_service, admin_ctx, target_user,
                                                               mock_network_repo, mock_role_repo):
        mock_network_repo.find_by_id.return_value = models.Network(id=7, name="North")
        mock_role_repo.replace_for_user.return_value = []

        assignment_service.reconcile_user_role(admin_ctx, 10, "ADMIN", network_id=7)

        mock_role_repo.replace_for_user.assert_called_once_with(
            10, Role.ADMIN, None, None,
            membership={"network_id": 7, "cell_id": None, "membership_type": "MEMBER"}
        )

    def test_unknown_role_is_invalid(self, assignment_service, admin_ctx, target_user):
        with pytest.raises(InvalidAssignmentError, match="Unknown role"):
            assignment_service.reconcile_user_role(admin_ctx, 10, "BISHOP")

    def test_non_admin_is_rejected(self, assignment_service, mock_role_repo, mock_user_repo):
        """관리자가 아니면 사용자를 조회하기 전에 AuthorizationError가 발생합니다."""
        ctx = AuthorizationContext.from_records(2, [("NETWORK_LEADER", 7, None)])

        with pytest.raises(AuthorizationError):
            assignment_service.reconcile_user_role(ctx, 10, "CELL_LEADER", cell_id=42)
        mock_user_repo.find_by_id.assert_not_called()
        mock_role_repo.replace_for_user.assert_not_called()

    def test_deleted_user_is_not_found(self, assignment_service, admin_ctx, mock_user_repo):
        mock_user_repo.find_by_id.return_value = models.User(
            id=10, username="gone", name="Gone", deleted_at=datetime(2026, 1, 1)
        )

        with pytest.raises(UserNotFoundError):
            assignment_service.reconcile_user_role(admin_ctx, 10, "ADMIN")

# ===================================================================
#  소속(Membership) 테스트
# ===================================================================
class TestMembership:
    def test_cell_leader_assigns_member_to_own_cell(self, assignment_service, target_user,
                                                    mock_cell_repo, mock_membership_repo):
        # === Arrange ===
        ctx = AuthorizationContext.from_records(2, [("CELL_LEADER", None, 42)])
        mock_cell_repo.find_by_id.return_value = models.Cell(id=42, network_id=7, name="Hope")
        mock_membership_repo.upsert.return_value = models.Membership(
            id=3, user_id=10, network_id=7, cell_id=42, membership_type="MEMBER", status="ACTIVE"
        )

        # === Act ===
        result = assignment_service.assign_membership(ctx, 10, 42)

        # === Assert ===
        mock_membership_repo.upsert.assert_called_once_with(10, 7, 42)
        assert result["cell_id"] == 42
        assert result["status"] == "ACTIVE"

    def test_network_leader_assigns_member_inside_network(self, assignment_service, target_user,
                                                          mock_cell_repo, mock_membership_repo):
        ctx = AuthorizationContext.from_records(2, [("NETWORK_LEADER", 7, None)])
        mock_cell_repo.find_by_id.return_value = models.Cell(id=42, network_id=7, name="Hope")
        mock_membership_repo.upsert.return_value = models.Membership(id=3, user_id=10, network_id=7, cell_id=42)

        assignment_service.assign_membership(ctx, 10, 42)

        mock_membership_repo.upsert.assert_called_once_with(10, 7, 42)

    def test_leader_of_other_cell_is_rejected(self, assignment_service, mock_cell_repo, mock_membership_repo):
        ctx = AuthorizationContext.from_records(2, [("CELL_LEADER", None, 43)])
        mock_cell_repo.find_by_id.return_value = models.Cell(id=42, network_id=7, name="Hope")

        with pytest.raises(AuthorizationError):
            assignment_service.assign_membership(ctx, 10, 42)
        mock_membership_repo.upsert.assert_not_called()

    def test_missing_cell(self, assignment_service, admin_ctx, mock_cell_repo):
        mock_cell_repo.find_by_id.return_value = None

        with pytest.raises(CellNotFoundError):
            assignment_service.assign_membership(admin_ctx, 10, 42)

    def test_remove_membership(self, assignment_service, admin_ctx, mock_cell_repo, mock_membership_repo):
        mock_cell_repo.find_by_id.return_value = models.Cell(id=42, network_id=7, name="Hope")
        mock_membership_repo.deactivate.return_value = 1

        assert assignment_service.remove_membership(admin_ctx, 10, 42) is True
        mock_membership_repo.deactivate.assert_called_once_with(10, 7, 42)

# ===================================================================
#  중복 정리 테스트
# ===================================================================
class TestDeduplicate:
    def test_keeps_most_recent_row(self, assignment_service, mock_role_repo):
        """생성 순서상 마지막 배정만 남기고 나머지를 삭제합니다."""
        mock_role_repo.find_duplicates.return_value = [
            {"user_id": 10, "role": Role.CELL_LEADER, "network_id": 7, "cell_id": 42, "ids": [3, 5, 9]},
        ]

        report = assignment_service.deduplicate_role_assignments()

        mock_role_repo.delete_by_ids.assert_called_once_with([3, 5])
        assert report == [{
            "user_id": 10, "role": "CELL_LEADER", "network_id": 7, "cell_id": 42, "kept": 9, "deleted": [3, 5]
        }]

    def test_nothing_to_do(self, assignment_service, mock_role_repo):
        mock_role_repo.find_duplicates.return_value = []

        assert assignment_service.deduplicate_role_assignments() == []
        mock_role_repo.delete_by_ids.assert_not_called()
