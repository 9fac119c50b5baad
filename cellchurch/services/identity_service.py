import hashlib
import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, Any, List

from cellchurch import config
from cellchurch.database import models
from cellchurch.policy import AuthorizationContext, assert_permission, can_manage_users
from cellchurch.repositories.interfaces import IUserRepository, IRoleAssignmentRepository
from cellchurch.services.exceptions import (
    UserCreationError, UserNotFoundError, AuthenticationError, TokenInvalidError
)

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode('utf-8')).hexdigest()


class IdentityService:
    """사용자 계정, 인증 토큰, 요청별 인가 컨텍스트를 관리하는 서비스입니다."""
    _token_cache = {}

    def __init__(self, user_repo: IUserRepository, role_repo: IRoleAssignmentRepository):
        """
        IdentityService를 초기화합니다.

        Args:
            user_repo: 사용자 데이터에 접근하기 위한 리포지토리.
            role_repo: 역할 배정 데이터에 접근하기 위한 리포지토리 (컨텍스트 생성, 소프트 삭제 시 사용).
        """
        self.user_repo = user_repo
        self.role_repo = role_repo

    def create_user(self, ctx: AuthorizationContext, username: str, password: str, name: str = None) -> Dict[str, Any]:
        """
        새로운 사용자를 생성합니다. 비밀번호는 해시하여 저장합니다.

        Raises:
            AuthorizationError: 관리자가 아닐 때.
            UserCreationError: 동일한 이름의 사용자가 이미 존재하거나 값이 비어 있을 때.
        """
        assert_permission(can_manage_users(ctx), "Only administrators can create users.")
        if not username or not password:
            raise UserCreationError("Username and password are required.")
        if self.user_repo.find_by_username(username):
            raise UserCreationError(f"User with username '{username}' already exists.")

        new_user = models.User(username=username, name=name or username, password_hash=hash_password(password))
        created_user = self.user_repo.create(new_user)
        logger.info("User %s created by %s", created_user.id, ctx.user_id)
        return _user_to_dict(created_user)

    def list_users(self, ctx: AuthorizationContext, include_deleted: bool = False) -> List[Dict[str, Any]]:
        """사용자 목록을 조회합니다. (비밀번호 제외)"""
        assert_permission(can_manage_users(ctx), "Only administrators can list users.")
        return [_user_to_dict(u) for u in self.user_repo.list_all(include_deleted=include_deleted)]

    def get_user(self, ctx: AuthorizationContext, user_id: int) -> Dict[str, Any]:
        """
        ID로 특정 사용자를 조회합니다. 관리자 또는 본인만 조회할 수 있습니다.

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        assert_permission(can_manage_users(ctx) or ctx.user_id == user_id, "Not allowed to view this user.")
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        return _user_to_dict(user)

    def soft_delete_user(self, ctx: AuthorizationContext, user_id: int) -> bool:
        """
        사용자를 소프트 삭제합니다. 역할 배정 삭제와 소속 비활성화가 같은 트랜잭션에서 처리됩니다.

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        assert_permission(can_manage_users(ctx), "Only administrators can delete users.")
        user = self.user_repo.find_by_id(user_id)
        if not user or user.is_deleted:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")

        self.user_repo.soft_delete(user)
        logger.info("User %s soft-deleted by %s", user.id, ctx.user_id)
        return True

    def restore_user(self, ctx: AuthorizationContext, user_id: int) -> Dict[str, Any]:
        """소프트 삭제된 사용자를 복구합니다. 역할 배정은 복구되지 않습니다."""
        assert_permission(can_manage_users(ctx), "Only administrators can restore users.")
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        user.deleted_at = None
        return _user_to_dict(self.user_repo.save(user))

    def authenticate(self, username: str, password: str) -> Dict[str, str]:
        """
        자격증명을 검증하고, 성공 시 인증 토큰을 발급합니다.

        Raises:
            AuthenticationError: 사용자가 없거나, 삭제되었거나, 비밀번호가 틀렸을 때.
        """
        user = self.user_repo.find_by_username(username)
        if not user or user.is_deleted:
            raise AuthenticationError("Invalid username or password.")
        if user.password_hash != hash_password(password):
            raise AuthenticationError("Invalid username or password.")

        token = str(uuid.uuid4())
        expires_at = datetime.now() + timedelta(minutes=config.TOKEN_TTL_MINUTES)
        self._token_cache[token] = {
            'user_id': user.id,
            'expires_at': expires_at
        }
        return {"token": token, "expires_at": expires_at.isoformat()}

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        인증 토큰의 유효성을 검증하고, 유효하면 토큰 데이터를 반환합니다.

        Raises:
            TokenInvalidError: 토큰을 찾을 수 없거나 만료되었을 때.
        """
        token_data = self._token_cache.get(token)
        if not token_data:
            raise TokenInvalidError("Token not found or invalid.")

        if datetime.now() > token_data['expires_at']:
            del self._token_cache[token]
            raise TokenInvalidError("Token has expired.")

        return token_data

    def resolve_context(self, user_id: int) -> AuthorizationContext:
        """사용자의 현재 역할 배정으로 불변 인가 컨텍스트를 만듭니다."""
        return AuthorizationContext.from_records(user_id, self.role_repo.list_for_user(user_id))

    def context_for_token(self, token: str) -> AuthorizationContext:
        """
        토큰을 검증하고 해당 사용자의 인가 컨텍스트를 반환합니다. 요청당 한 번 호출됩니다.

        Raises:
            TokenInvalidError: 토큰이 유효하지 않거나, 사용자가 삭제되었을 때.
        """
        token_data = self.validate_token(token)
        user = self.user_repo.find_by_id(token_data['user_id'])
        if not user or user.is_deleted:
            self._token_cache.pop(token, None)
            raise TokenInvalidError("Token owner no longer exists.")
        return self.resolve_context(user.id)


def _user_to_dict(user: models.User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "deleted": user.deleted_at is not None,
    }
