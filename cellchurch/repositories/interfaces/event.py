from abc import ABC, abstractmethod
from typing import List, Optional
from cellchurch.database import models

class IEventRepository(ABC):
    @abstractmethod
    def create(self, event_model: models.Event) -> models.Event:
        """새로운 행사를 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, event_id: int) -> Optional[models.Event]:
        pass

    @abstractmethod
    def list_all(self) -> List[models.Event]:
        """행사 목록을 시작 일시 순으로 조회합니다."""
        pass
