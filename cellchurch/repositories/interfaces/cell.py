from abc import ABC, abstractmethod
from typing import List, Optional
from cellchurch.database import models

class ICellRepository(ABC):
    @abstractmethod
    def create(self, cell_model: models.Cell) -> models.Cell:
        """새로운 셀을 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, cell_id: int) -> Optional[models.Cell]:
        """고유 ID로 특정 셀을 조회합니다."""
        pass

    @abstractmethod
    def find_by_name(self, network_id: int, name: str) -> Optional[models.Cell]:
        """네트워크 안에서 이름으로 셀을 조회합니다."""
        pass

    @abstractmethod
    def list_all(self) -> List[models.Cell]:
        """모든 셀의 목록을 조회합니다."""
        pass

    @abstractmethod
    def list_by_network(self, network_id: int) -> List[models.Cell]:
        """특정 네트워크에 속한 셀 목록을 조회합니다."""
        pass

    @abstractmethod
    def delete(self, cell: models.Cell) -> bool:
        """셀과 해당 셀 범위의 CELL_LEADER 배정을 한 트랜잭션에서 삭제합니다."""
        pass
