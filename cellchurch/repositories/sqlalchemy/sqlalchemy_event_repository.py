from typing import List, Optional
from sqlalchemy.orm import Session
from cellchurch.database import models
from cellchurch.repositories.interfaces import IEventRepository

class SqlalchemyEventRepository(IEventRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, event_model: models.Event) -> models.Event:
        self.db.add(event_model)
        self.db.commit()
        self.db.refresh(event_model)
        return event_model

    def find_by_id(self, event_id: int) -> Optional[models.Event]:
        return self.db.query(models.Event).filter(models.Event.id == event_id).first()

    def list_all(self) -> List[models.Event]:
        return self.db.query(models.Event).order_by(models.Event.start_at.asc()).all()
