from abc import ABC, abstractmethod
from typing import List, Optional
from cellchurch.database import models

class IUserRepository(ABC):
    @abstractmethod
    def create(self, user_model: models.User) -> models.User:
        """새로운 사용자를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, user_id: int) -> Optional[models.User]:
        """고유 ID로 특정 사용자를 조회합니다."""
        pass

    @abstractmethod
    def find_by_username(self, username: str) -> Optional[models.User]:
        """사용자 이름으로 특정 사용자를 조회합니다."""
        pass

    @abstractmethod
    def list_all(self, include_deleted: bool = False) -> List[models.User]:
        """사용자 목록을 조회합니다. 기본적으로 소프트 삭제된 사용자는 제외합니다."""
        pass

    @abstractmethod
    def save(self, user: models.User) -> models.User:
        """변경된 사용자 정보를 저장합니다."""
        pass

    @abstractmethod
    def soft_delete(self, user: models.User) -> models.User:
        """
        사용자를 소프트 삭제합니다. deleted_at 기록, 역할 배정 삭제, 활성 소속 비활성화를
        하나의 트랜잭션으로 커밋하며 실패하면 롤백합니다.
        """
        pass
