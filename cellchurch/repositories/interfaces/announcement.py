from abc import ABC, abstractmethod
from typing import List, Optional
from cellchurch.database import models

class IAnnouncementRepository(ABC):
    @abstractmethod
    def create(self, announcement_model: models.Announcement) -> models.Announcement:
        """새로운 공지사항을 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, announcement_id: int) -> Optional[models.Announcement]:
        pass

    @abstractmethod
    def list_all(self, published_only: bool = True) -> List[models.Announcement]:
        """공지사항 목록을 최신순으로 조회합니다. 기본적으로 게시된 공지만 조회합니다."""
        pass

    @abstractmethod
    def save(self, announcement: models.Announcement) -> models.Announcement:
        """변경된 공지사항을 저장합니다."""
        pass
