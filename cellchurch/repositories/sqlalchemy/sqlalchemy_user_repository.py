from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from cellchurch.database import models
from cellchurch.repositories.interfaces import IUserRepository
from cellchurch.repositories.sqlalchemy.sqlalchemy_membership_repository import retire_memberships

class SqlalchemyUserRepository(IUserRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, user_model: models.User) -> models.User:
        self.db.add(user_model)
        self.db.commit()
        self.db.refresh(user_model)
        return user_model

    def find_by_id(self, user_id: int) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.id == user_id).first()

    def find_by_username(self, username: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.username == username).first()

    def list_all(self, include_deleted: bool = False) -> List[models.User]:
        query = self.db.query(models.User)
        if not include_deleted:
            query = query.filter(models.User.deleted_at.is_(None))
        return query.order_by(models.User.username.asc()).all()

    def save(self, user: models.User) -> models.User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def soft_delete(self, user: models.User) -> models.User:
        try:
            user.deleted_at = datetime.now()
            self.db.add(user)
            self.db.query(models.RoleAssignment).filter(
                models.RoleAssignment.user_id == user.id
            ).delete(synchronize_session="fetch")
            retire_memberships(self.db, user.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user
