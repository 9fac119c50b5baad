from abc import ABC, abstractmethod
from typing import List, Optional
from cellchurch.database import models

class IMembershipRepository(ABC):
    @abstractmethod
    def list_for_user(self, user_id: int, active_only: bool = True) -> List[models.Membership]:
        """사용자의 소속 목록을 조회합니다."""
        pass

    @abstractmethod
    def upsert(self, user_id: int, network_id: Optional[int], cell_id: Optional[int],
               membership_type: str = "MEMBER") -> models.Membership:
        """같은 범위의 활성 소속이 있으면 갱신하고, 없으면 새로 만듭니다."""
        pass

    @abstractmethod
    def deactivate(self, user_id: int, network_id: Optional[int], cell_id: Optional[int]) -> int:
        """해당 범위의 활성 소속을 INACTIVE로 바꾸고 변경된 행 수를 반환합니다."""
        pass
