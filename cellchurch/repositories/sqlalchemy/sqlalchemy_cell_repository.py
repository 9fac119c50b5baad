from typing import List, Optional
from sqlalchemy.orm import Session
from cellchurch.database import models
from cellchurch.policy.roles import Role
from cellchurch.repositories.interfaces import ICellRepository

class SqlalchemyCellRepository(ICellRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, cell_model: models.Cell) -> models.Cell:
        self.db.add(cell_model)
        self.db.commit()
        self.db.refresh(cell_model)
        return cell_model

    def find_by_id(self, cell_id: int) -> Optional[models.Cell]:
        return self.db.query(models.Cell).filter(models.Cell.id == cell_id).first()

    def find_by_name(self, network_id: int, name: str) -> Optional[models.Cell]:
        return self.db.query(models.Cell).filter(
            models.Cell.network_id == network_id,
            models.Cell.name == name
        ).first()

    def list_all(self) -> List[models.Cell]:
        return self.db.query(models.Cell).order_by(models.Cell.network_id.asc(), models.Cell.name.asc()).all()

    def list_by_network(self, network_id: int) -> List[models.Cell]:
        return self.db.query(models.Cell).filter(models.Cell.network_id == network_id).order_by(models.Cell.name.asc()).all()

    def delete(self, cell: models.Cell) -> bool:
        if not cell:
            return False
        try:
            self.db.query(models.RoleAssignment).filter(
                models.RoleAssignment.role == Role.CELL_LEADER,
                models.RoleAssignment.cell_id == cell.id
            ).delete(synchronize_session="fetch")
            self.db.delete(cell)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True
