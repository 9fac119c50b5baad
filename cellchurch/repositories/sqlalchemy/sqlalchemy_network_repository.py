from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from cellchurch.database import models
from cellchurch.policy.roles import Role
from cellchurch.repositories.interfaces import INetworkRepository

class SqlalchemyNetworkRepository(INetworkRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, network_model: models.Network) -> models.Network:
        self.db.add(network_model)
        self.db.commit()
        self.db.refresh(network_model)
        return network_model

    def find_by_id(self, network_id: int) -> Optional[models.Network]:
        return self.db.query(models.Network).filter(models.Network.id == network_id).first()

    def find_by_name(self, name: str) -> Optional[models.Network]:
        return self.db.query(models.Network).filter(models.Network.name == name).first()

    def list_all(self) -> List[models.Network]:
        return self.db.query(models.Network).order_by(models.Network.name.asc()).all()

    def count_cells(self, network_id: int) -> int:
        return self.db.query(func.count(models.Cell.id)).filter(models.Cell.network_id == network_id).scalar()

    def delete(self, network: models.Network) -> bool:
        if not network:
            return False
        try:
            self.db.query(models.RoleAssignment).filter(
                models.RoleAssignment.role == Role.NETWORK_LEADER,
                models.RoleAssignment.network_id == network.id
            ).delete(synchronize_session="fetch")
            self.db.delete(network)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return True
