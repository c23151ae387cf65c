"""
User account lookups (master database)
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from rfidstock.models.user import User

logger = logging.getLogger(__name__)


class UserDirectory:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> Optional[User]:
        if user_id is None:
            return None
        return self.db.get(User, user_id)

    def get_active(self, user_id: int) -> Optional[User]:
        user = self.get(user_id)
        if user is None or not user.is_active:
            return None
        return user

    def list_by_tenant(self, client_code: str, include_inactive: bool = True) -> List[User]:
        query = self.db.query(User).filter(User.client_code == client_code)
        if not include_inactive:
            query = query.filter(User.is_active.is_(True))
        return query.order_by(User.id).all()

    def children_of(self, admin_user_id: int) -> List[User]:
        """Users created directly under an admin."""
        return (
            self.db.query(User)
            .filter(User.admin_user_id == admin_user_id)
            .order_by(User.id)
            .all()
        )

    def set_active(self, user: User, active: bool) -> User:
        """Soft delete / reactivate. Caller commits."""
        user.is_active = active
        self.db.flush()
        logger.info("User %s %s", user.id, "activated" if active else "deactivated")
        return user
