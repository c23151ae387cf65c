"""
Which accounts an admin may manage (view, edit permissions for, deactivate).

- Tenant-wide admin (MainAdmin, or an admin with no parent admin): every user
  in the same tenant.
- Scoped admin: itself and the users created under it (admin_user_id).
- Non-admin: only itself.
Nobody manages across tenants.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from rfidstock.exceptions import AuthorizationDenied, UserNotFound
from rfidstock.models.user import User
from rfidstock.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)


def is_tenant_wide_admin(user: Optional[User]) -> bool:
    if user is None or not user.is_admin:
        return False
    return user.is_main_admin or user.admin_user_id is None


class UserHierarchyResolver:
    def __init__(self, db: Session):
        self.users = UserDirectory(db)

    def can_manage(self, acting_user_id: int, target_user_id: int) -> bool:
        acting = self.users.get_active(acting_user_id)
        target = self.users.get(target_user_id)
        if acting is None or target is None:
            return False
        if acting.client_code != target.client_code:
            return False
        if acting.id == target.id:
            return True
        if not acting.is_admin:
            return False
        if is_tenant_wide_admin(acting):
            return True
        return target.admin_user_id == acting.id

    def require_manage(self, acting_user_id: int, target_user_id: int) -> None:
        if not self.can_manage(acting_user_id, target_user_id):
            logger.info("User %s denied management of user %s", acting_user_id, target_user_id)
            raise AuthorizationDenied("Access denied to this user.")

    def require_managed_user(self, acting_user_id: int, target_user_id: int) -> User:
        """
        Target user for an admin operation. Users of other tenants are reported
        as not found; users of the same tenant outside the caller's scope as denied.
        """
        acting = self.users.get(acting_user_id)
        target = self.users.get(target_user_id)
        if acting is None or target is None or acting.client_code != target.client_code:
            raise UserNotFound(target_user_id)
        self.require_manage(acting_user_id, target_user_id)
        return target

    def is_main_admin(self, user_id: int) -> bool:
        return is_tenant_wide_admin(self.users.get_active(user_id))

    def managed_users(self, admin_user_id: int) -> List[User]:
        """Users the admin may manage, excluding itself."""
        admin = self.users.get_active(admin_user_id)
        if admin is None or not admin.is_admin:
            return []
        if is_tenant_wide_admin(admin):
            return [u for u in self.users.list_by_tenant(admin.client_code) if u.id != admin.id]
        return [u for u in self.users.children_of(admin.id) if u.client_code == admin.client_code]

    def users_by_location(
        self,
        admin_user_id: int,
        branch_id: Optional[int] = None,
        counter_id: Optional[int] = None,
    ) -> List[User]:
        """Managed users assigned to the branch and/or counter. No filter returns every managed user."""
        users = self.managed_users(admin_user_id)
        if branch_id is not None:
            users = [u for u in users if u.branch_id == branch_id]
        if counter_id is not None:
            users = [u for u in users if u.counter_id == counter_id]
        return users
