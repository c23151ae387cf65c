"""
Per-user module x action permission matrix (master database).

One UserPermission row per (user, module). No row means no capability on that
module. Mutations are upserts keyed by (user_id, module), attributed to the
acting admin in the activity log, and committed here. Bulk operations commit
per user so one failing id never blocks the rest of the batch.
"""
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rfidstock.exceptions import AccessLayerError, UserNotFound, ValidationError
from rfidstock.models.permission import UserPermission
from rfidstock.models.user import User
from rfidstock.permission_config import (
    AVAILABLE_MODULES,
    CAPABILITY_FIELDS,
    PermissionModule,
    capability_field,
)
from rfidstock.schemas.permission import (
    BulkItemResult,
    ModulePermissionSummary,
    PermissionGrantCreate,
    UserPermissionSummary,
)
from rfidstock.services.activity_logging import ActivityLogger
from rfidstock.services.user_directory import UserDirectory
from rfidstock.services.user_hierarchy import UserHierarchyResolver

logger = logging.getLogger(__name__)


def _grant_values(grant: PermissionGrantCreate) -> Dict[str, bool]:
    return {
        "can_view": grant.can_view,
        "can_create": grant.can_create,
        "can_update": grant.can_edit,
        "can_delete": grant.can_delete,
        "can_export": grant.can_export,
        "can_import": grant.can_import,
    }


def _row_values(row: UserPermission) -> Dict[str, bool]:
    return {f: bool(getattr(row, f)) for f in CAPABILITY_FIELDS}


class PermissionService:
    def __init__(self, db: Session):
        self.db = db
        self.users = UserDirectory(db)
        self.activity = ActivityLogger(db)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_grants(self, user_id: int) -> List[UserPermission]:
        return (
            self.db.query(UserPermission)
            .filter(UserPermission.user_id == user_id)
            .order_by(UserPermission.module)
            .all()
        )

    def get_grant(self, user_id: int, module) -> Optional[UserPermission]:
        parsed = PermissionModule.parse(module)
        if parsed is None:
            return None
        return (
            self.db.query(UserPermission)
            .filter(UserPermission.user_id == user_id, UserPermission.module == parsed.value)
            .first()
        )

    def get_all_grants(self, client_code: str) -> List[Tuple[UserPermission, User]]:
        """Every grant in a tenant with its user, for the organization-wide listing."""
        return (
            self.db.query(UserPermission, User)
            .join(User, User.id == UserPermission.user_id)
            .filter(User.client_code == client_code)
            .order_by(UserPermission.user_id, UserPermission.module)
            .all()
        )

    def has_permission(self, user_id: int, module, action: str) -> bool:
        """
        False when there is no grant row, the user is missing or deactivated,
        or the module or action is unknown.
        action is case-insensitive; edit and update are the same capability.
        """
        field = capability_field(action)
        if field is None:
            return False
        if self.users.get_active(user_id) is None:
            return False
        grant = self.get_grant(user_id, module)
        if grant is None:
            return False
        return bool(getattr(grant, field))

    def summarize(self, user_id: int) -> UserPermissionSummary:
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFound(user_id)

        grants = self.get_grants(user_id)
        module_summaries = [
            ModulePermissionSummary(
                module=g.module,
                can_view=g.can_view,
                can_create=g.can_create,
                can_edit=g.can_update,
                can_delete=g.can_delete,
                can_export=g.can_export,
                can_import=g.can_import,
                permission_count=g.permission_count,
            )
            for g in grants
        ]
        return UserPermissionSummary(
            user_id=user.id,
            user_name=user.display_name,
            user_email=user.email,
            total_permissions=len(grants) * len(CAPABILITY_FIELDS),
            active_permissions=sum(m.permission_count for m in module_summaries),
            module_summaries=module_summaries,
        )

    @staticmethod
    def list_available_modules() -> List[str]:
        return list(AVAILABLE_MODULES)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _require_user(self, user_id: int) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user

    def set_grants(
        self,
        user_id: int,
        grants: Sequence[PermissionGrantCreate],
        acting_admin_id: int,
    ) -> List[UserPermission]:
        """Upsert one row per module in grants. Modules not mentioned are left as they are."""
        user = self._require_user(user_id)
        modules = [g.module.value for g in grants]
        duplicates = sorted({m for m in modules if modules.count(m) > 1})
        if duplicates:
            raise ValidationError(f"Duplicate module in payload: {', '.join(duplicates)}")

        existing = {row.module: row for row in self.get_grants(user_id)}
        old_values = {}
        new_values = {}
        try:
            for grant in grants:
                module = grant.module.value
                values = _grant_values(grant)
                row = existing.get(module)
                if row is None:
                    row = UserPermission(
                        user_id=user.id,
                        client_code=user.client_code,
                        module=module,
                        created_by=acting_admin_id,
                        **values,
                    )
                    self.db.add(row)
                    existing[module] = row
                else:
                    old_values[module] = _row_values(row)
                    for field, value in values.items():
                        setattr(row, field, value)
                new_values[module] = values

            self.activity.log(
                acting_admin_id,
                user.client_code,
                "Permission",
                "Update",
                f"Updated permissions for user {user.user_name}: {', '.join(modules) or 'none'}",
                table_name="user_permissions",
                record_id=user.id,
                old_values=old_values or None,
                new_values=new_values,
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return self.get_grants(user_id)

    def _delete_grant(self, user: User, module: PermissionModule, acting_admin_id: int) -> bool:
        """Delete and log one (user, module) row in the current transaction. Caller commits."""
        deleted = (
            self.db.query(UserPermission)
            .filter(UserPermission.user_id == user.id, UserPermission.module == module.value)
            .delete(synchronize_session=False)
        )
        if deleted:
            self.activity.log(
                acting_admin_id,
                user.client_code,
                "Permission",
                "Remove",
                f"Removed {module.value} permission for user {user.user_name}",
                table_name="user_permissions",
                record_id=user.id,
            )
        return bool(deleted)

    def remove_grant(self, user_id: int, module, acting_admin_id: int) -> bool:
        """Delete the (user, module) row. Returns False if there was nothing to delete."""
        user = self._require_user(user_id)
        parsed = PermissionModule.parse(module)
        if parsed is None:
            raise ValidationError(f"Unknown module: {module}")
        try:
            deleted = self._delete_grant(user, parsed, acting_admin_id)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return deleted

    def remove_all_grants(self, user_id: int, acting_admin_id: int) -> int:
        user = self._require_user(user_id)
        try:
            deleted = (
                self.db.query(UserPermission)
                .filter(UserPermission.user_id == user.id)
                .delete(synchronize_session=False)
            )
            if deleted:
                self.activity.log(
                    acting_admin_id,
                    user.client_code,
                    "Permission",
                    "RemoveAll",
                    f"Removed all permissions ({deleted}) for user {user.user_name}",
                    table_name="user_permissions",
                    record_id=user.id,
                )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return deleted

    # -------------------------------------------------------------------------
    # Bulk (best effort, per-user outcome)
    # -------------------------------------------------------------------------

    def _bulk(self, user_ids: Iterable[int], acting_admin_id: int, apply) -> List[BulkItemResult]:
        hierarchy = UserHierarchyResolver(self.db)
        results = []
        for user_id in dict.fromkeys(user_ids):
            try:
                hierarchy.require_managed_user(acting_admin_id, user_id)
                apply(user_id)
                results.append(BulkItemResult(user_id=user_id, success=True))
            except AccessLayerError as e:
                self.db.rollback()
                results.append(BulkItemResult(user_id=user_id, success=False, error=e.detail))
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.warning("Bulk permission change failed for user %s: %s", user_id, e)
                results.append(BulkItemResult(user_id=user_id, success=False, error="Database error"))
        return results

    def bulk_set_grants(
        self,
        user_ids: Sequence[int],
        grants: Sequence[PermissionGrantCreate],
        acting_admin_id: int,
    ) -> List[BulkItemResult]:
        return self._bulk(
            user_ids,
            acting_admin_id,
            lambda user_id: self.set_grants(user_id, grants, acting_admin_id),
        )

    def bulk_remove_grants(
        self,
        user_ids: Sequence[int],
        acting_admin_id: int,
        modules: Sequence[PermissionModule] = (),
        remove_all: bool = False,
    ) -> List[BulkItemResult]:
        if not remove_all and not modules:
            raise ValidationError("Either modules or remove_all must be provided")
        parsed = [PermissionModule.parse(m) for m in modules]
        unknown = [str(m) for m, p in zip(modules, parsed) if p is None]
        if unknown:
            raise ValidationError(f"Unknown module: {', '.join(unknown)}")

        def _apply(user_id: int) -> None:
            if remove_all:
                self.remove_all_grants(user_id, acting_admin_id)
            else:
                # all listed modules for one user go in a single transaction
                user = self._require_user(user_id)
                for module in parsed:
                    self._delete_grant(user, module, acting_admin_id)
                self.db.commit()

        return self._bulk(user_ids, acting_admin_id, _apply)
