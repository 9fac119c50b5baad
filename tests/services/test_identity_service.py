# tests/services/test_identity_service.py
import pytest
from unittest.mock import MagicMock, patch, ANY
from datetime import datetime, timedelta
import hashlib

from cellchurch.services.identity_service import IdentityService
from cellchurch.services.exceptions import *
from cellchurch.repositories.interfaces import IUserRepository, IRoleAssignmentRepository
from cellchurch.database import models
from cellchurch.policy import AuthorizationContext, CellLeader, NetworkLeader, Role

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_user_repo() -> MagicMock:
    """IUserRepository에 대한 모의 객체를 생성합니다."""
    return MagicMock(spec=IUserRepository)

@pytest.fixture
def mock_role_repo() -> MagicMock:
    """IRoleAssignmentRepository에 대한 모의 객체를 생성합니다."""
    return MagicMock(spec=IRoleAssignmentRepository)

@pytest.fixture
def identity_service(mock_user_repo: MagicMock, mock_role_repo: MagicMock) -> IdentityService:
    """테스트에 사용될 IdentityService 인스턴스를 생성하고, 의존성을 주입합니다."""
    IdentityService._token_cache.clear()
    return IdentityService(mock_user_repo, mock_role_repo)

@pytest.fixture
def admin_ctx() -> AuthorizationContext:
    return AuthorizationContext.from_records(1, [("ADMIN", None, None)])

@pytest.fixture
def member_ctx() -> AuthorizationContext:
    return AuthorizationContext.from_records(5, [])

# ===================================================================
#  사용자 관리(User Management) 테스트
# ===================================================================
class TestUserManagement:
    @patch('cellchurch.services.identity_service.hashlib.sha256')
    def test_create_user_success(self, mock_sha256: MagicMock, identity_service: IdentityService,
                                 mock_user_repo: MagicMock, admin_ctx: AuthorizationContext):
        """사용자 생성 성공 시나리오를 테스트합니다."""
        # === Arrange ===
        username, password = "grace", "password123"
        # 시나리오: 사용자 이름이 중복되지 않음
        mock_user_repo.find_by_username.return_value = None
        mock_user_repo.create.return_value = models.User(id=10, username=username, name="Grace")

        # === Act ===
        user = identity_service.create_user(admin_ctx, username, password, name="Grace")

        # === Assert ===
        assert user == {"id": 10, "username": username, "name": "Grace", "deleted": False}
        mock_user_repo.find_by_username.assert_called_once_with(username)
        mock_user_repo.create.assert_called_once_with(ANY)

    def test_create_user_fails_if_name_exists(self, identity_service: IdentityService,
                                              mock_user_repo: MagicMock, admin_ctx: AuthorizationContext):
        mock_user_repo.find_by_username.return_value = models.User(id=1, username="grace", name="Grace")

        with pytest.raises(UserCreationError):
            identity_service.create_user(admin_ctx, "grace", "pw")
        mock_user_repo.create.assert_not_called()

    def test_create_user_requires_admin(self, identity_service: IdentityService,
                                        mock_user_repo: MagicMock, member_ctx: AuthorizationContext):
        """관리자가 아니면 AuthorizationError가 발생하고 저장소는 호출되지 않습니다."""
        with pytest.raises(AuthorizationError):
            identity_service.create_user(member_ctx, "grace", "pw")
        mock_user_repo.find_by_username.assert_not_called()

    def test_get_user_allows_self(self, identity_service: IdentityService,
                                  mock_user_repo: MagicMock, member_ctx: AuthorizationContext):
        mock_user_repo.find_by_id.return_value = models.User(id=5, username="me", name="Me")

        assert identity_service.get_user(member_ctx, 5)["username"] == "me"
        with pytest.raises(AuthorizationError):
            identity_service.get_user(member_ctx, 6)

    def test_soft_delete_user_is_single_repository_call(self, identity_service: IdentityService,
                                                        mock_user_repo: MagicMock, mock_role_repo: MagicMock,
                                                        admin_ctx: AuthorizationContext):
        """소프트 삭제는 역할 정리까지 한 번의 저장소 호출(한 트랜잭션)로 처리되는지 테스트합니다."""
        # === Arrange ===
        user = models.User(id=2, username="grace", name="Grace")
        mock_user_repo.find_by_id.return_value = user

        # === Act ===
        result = identity_service.soft_delete_user(admin_ctx, 2)

        # === Assert ===
        assert result is True
        mock_user_repo.soft_delete.assert_called_once_with(user)
        mock_user_repo.save.assert_not_called()
        mock_role_repo.replace_for_user.assert_not_called()

    def test_soft_delete_already_deleted_user(self, identity_service: IdentityService, mock_user_repo: MagicMock,
                                              mock_role_repo: MagicMock, admin_ctx: AuthorizationContext):
        mock_user_repo.find_by_id.return_value = models.User(
            id=2, username="grace", name="Grace", deleted_at=datetime(2026, 1, 1)
        )

        with pytest.raises(UserNotFoundError):
            identity_service.soft_delete_user(admin_ctx, 2)
        mock_user_repo.soft_delete.assert_not_called()

    def test_restore_user(self, identity_service: IdentityService, mock_user_repo: MagicMock,
                          admin_ctx: AuthorizationContext):
        user = models.User(id=2, username="grace", name="Grace", deleted_at=datetime(2026, 1, 1))
        mock_user_repo.find_by_id.return_value = user
        mock_user_repo.save.return_value = user

        restored = identity_service.restore_user(admin_ctx, 2)

        assert restored["deleted"] is False
        assert user.deleted_at is None

# ===================================================================
#  인증 및 컨텍스트(Auth & Context) 테스트
# ===================================================================
class TestAuthAndContext:
    def test_authenticate_success(self, identity_service: IdentityService, mock_user_repo: MagicMock):
        """사용자 인증 성공 시나리오를 테스트합니다."""
        # === Arrange ===
        username, password = "grace", "password123"
        hashed_password = hashlib.sha256(password.encode('utf-8')).hexdigest()
        mock_user_repo.find_by_username.return_value = models.User(
            id=1, username=username, name="Grace", password_hash=hashed_password
        )

        # === Act ===
        result = identity_service.authenticate(username, password)

        # === Assert ===
        assert "token" in result
        assert "expires_at" in result
        assert identity_service.validate_token(result["token"])["user_id"] == 1

    def test_authenticate_fails_with_wrong_password(self, identity_service: IdentityService,
                                                    mock_user_repo: MagicMock):
        """잘못된 비밀번호로 인증 실패 시나리오를 테스트합니다."""
        mock_user_repo.find_by_username.return_value = models.User(
            id=1, username="grace", name="Grace", password_hash="correct_hash"
        )

        with pytest.raises(AuthenticationError, match="Invalid username or password"):
            identity_service.authenticate("grace", "wrong_password")

    def test_authenticate_fails_for_deleted_user(self, identity_service: IdentityService,
                                                 mock_user_repo: MagicMock):
        hashed_password = hashlib.sha256(b"pw").hexdigest()
        mock_user_repo.find_by_username.return_value = models.User(
            id=1, username="grace", name="Grace", password_hash=hashed_password, deleted_at=datetime(2026, 1, 1)
        )

        with pytest.raises(AuthenticationError):
            identity_service.authenticate("grace", "pw")

    def test_expired_token_is_rejected(self, identity_service: IdentityService):
        IdentityService._token_cache["old"] = {"user_id": 1, "expires_at": datetime.now() - timedelta(seconds=1)}

        with pytest.raises(TokenInvalidError, match="expired"):
            identity_service.validate_token("old")
        assert "old" not in IdentityService._token_cache

    def test_unknown_token_is_rejected(self, identity_service: IdentityService):
        with pytest.raises(TokenInvalidError):
            identity_service.validate_token("missing")

    def test_context_for_token_resolves_assignments(self, identity_service: IdentityService,
                                                    mock_user_repo: MagicMock, mock_role_repo: MagicMock):
        """토큰으로 사용자의 역할 배정을 불변 컨텍스트로 변환하는지 테스트합니다."""
        # === Arrange ===
        IdentityService._token_cache["tok"] = {"user_id": 3, "expires_at": datetime.now() + timedelta(hours=1)}
        mock_user_repo.find_by_id.return_value = models.User(id=3, username="lead", name="Lead")
        mock_role_repo.list_for_user.return_value = [
            models.RoleAssignment(id=1, user_id=3, role=Role.NETWORK_LEADER, network_id=7),
            models.RoleAssignment(id=2, user_id=3, role=Role.CELL_LEADER, network_id=8, cell_id=3),
        ]

        # === Act ===
        ctx = identity_service.context_for_token("tok")

        # === Assert ===
        assert ctx.user_id == 3
        assert ctx.assignments == frozenset({NetworkLeader(7), CellLeader(3)})
        mock_role_repo.list_for_user.assert_called_once_with(3)

    def test_context_for_deleted_owner_invalidates_token(self, identity_service: IdentityService,
                                                         mock_user_repo: MagicMock):
        IdentityService._token_cache["tok"] = {"user_id": 3, "expires_at": datetime.now() + timedelta(hours=1)}
        mock_user_repo.find_by_id.return_value = None

        with pytest.raises(TokenInvalidError):
            identity_service.context_for_token("tok")
        assert "tok" not in IdentityService._token_cache
