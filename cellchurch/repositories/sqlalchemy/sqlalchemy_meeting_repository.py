from typing import List
from sqlalchemy.orm import Session
from cellchurch.database import models
from cellchurch.repositories.interfaces import IMeetingRepository

class SqlalchemyMeetingRepository(IMeetingRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, meeting_model: models.Meeting) -> models.Meeting:
        self.db.add(meeting_model)
        self.db.commit()
        self.db.refresh(meeting_model)
        return meeting_model

    def list_by_cell(self, cell_id: int) -> List[models.Meeting]:
        return self.db.query(models.Meeting).filter(models.Meeting.cell_id == cell_id).order_by(models.Meeting.occurred_at.desc()).all()

    def list_by_network(self, network_id: int) -> List[models.Meeting]:
        return self.db.query(models.Meeting).join(models.Cell).filter(
            models.Cell.network_id == network_id
        ).order_by(models.Meeting.occurred_at.desc()).all()

    def list_all(self) -> List[models.Meeting]:
        return self.db.query(models.Meeting).order_by(models.Meeting.occurred_at.desc()).all()
