from typing import List, Optional
from sqlalchemy.orm import Session
from cellchurch.database import models
from cellchurch.repositories.interfaces import IAnnouncementRepository

class SqlalchemyAnnouncementRepository(IAnnouncementRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, announcement_model: models.Announcement) -> models.Announcement:
        self.db.add(announcement_model)
        self.db.commit()
        self.db.refresh(announcement_model)
        return announcement_model

    def find_by_id(self, announcement_id: int) -> Optional[models.Announcement]:
        return self.db.query(models.Announcement).filter(models.Announcement.id == announcement_id).first()

    def list_all(self, published_only: bool = True) -> List[models.Announcement]:
        query = self.db.query(models.Announcement)
        if published_only:
            query = query.filter(models.Announcement.published_at.isnot(None))
        return query.order_by(models.Announcement.created_at.desc(), models.Announcement.id.desc()).all()

    def save(self, announcement: models.Announcement) -> models.Announcement:
        self.db.add(announcement)
        self.db.commit()
        self.db.refresh(announcement)
        return announcement
