from abc import ABC, abstractmethod
from typing import List, Optional
from cellchurch.database import models

class INetworkRepository(ABC):
    @abstractmethod
    def create(self, network_model: models.Network) -> models.Network:
        """새로운 네트워크를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, network_id: int) -> Optional[models.Network]:
        """고유 ID로 특정 네트워크를 조회합니다."""
        pass

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[models.Network]:
        """이름으로 특정 네트워크를 조회합니다."""
        pass

    @abstractmethod
    def list_all(self) -> List[models.Network]:
        """모든 네트워크의 목록을 조회합니다."""
        pass

    @abstractmethod
    def count_cells(self, network_id: int) -> int:
        """네트워크에 속한 셀의 개수를 반환합니다."""
        pass

    @abstractmethod
    def delete(self, network: models.Network) -> bool:
        """
        네트워크와 해당 네트워크 범위의 NETWORK_LEADER 배정을 한 트랜잭션에서 삭제합니다.
        """
        pass
