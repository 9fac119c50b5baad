from abc import ABC, abstractmethod
from typing import List
from cellchurch.database import models

class IMeetingRepository(ABC):
    @abstractmethod
    def create(self, meeting_model: models.Meeting) -> models.Meeting:
        """새로운 모임 기록을 생성합니다."""
        pass

    @abstractmethod
    def list_by_cell(self, cell_id: int) -> List[models.Meeting]:
        """셀의 모임 기록을 최신순으로 조회합니다."""
        pass

    @abstractmethod
    def list_by_network(self, network_id: int) -> List[models.Meeting]:
        """네트워크에 속한 모든 셀의 모임 기록을 조회합니다."""
        pass

    @abstractmethod
    def list_all(self) -> List[models.Meeting]:
        """전체 모임 기록을 조회합니다."""
        pass
