"""
Admin permission management API

Module x action grants for users of the caller's organization. Every route is
admin-only, and every per-user route also requires the caller to manage the
target user (tenant-wide admins manage everyone, scoped admins their own users).
"""
import logging
from typing import List

from fastapi import APIRouter, Depends

from rfidstock.dependencies import get_current_admin, get_permission_service, get_user_hierarchy
from rfidstock.exceptions import ValidationError
from rfidstock.models.user import User
from rfidstock.permission_config import PermissionModule
from rfidstock.schemas.permission import (
    BulkOperationResult,
    BulkPermissionRemove,
    BulkPermissionUpdate,
    MessageResponse,
    PermissionAssignResult,
    PermissionGrantCreate,
    UserPermissionResponse,
    UserPermissionSummary,
)
from rfidstock.services.permission_service import PermissionService
from rfidstock.services.user_hierarchy import UserHierarchyResolver, is_tenant_wide_admin

logger = logging.getLogger(__name__)

router = APIRouter()


def _bulk_result(action: str, results) -> BulkOperationResult:
    succeeded = sum(1 for r in results if r.success)
    failed = len(results) - succeeded
    return BulkOperationResult(
        message=f"{action} completed: {succeeded} succeeded, {failed} failed",
        succeeded=succeeded,
        failed=failed,
        results=results,
    )


@router.get("/admin/permissions/modules", response_model=List[str])
def list_available_modules(admin: User = Depends(get_current_admin)):
    """Names accepted in the module field of a grant."""
    return PermissionService.list_available_modules()


@router.get("/admin/permissions", response_model=List[UserPermissionResponse])
def list_organization_permissions(
    admin: User = Depends(get_current_admin),
    permissions: PermissionService = Depends(get_permission_service),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
):
    """Every grant of the caller's organization. Scoped admins only see users they manage."""
    rows = permissions.get_all_grants(admin.client_code)
    if not is_tenant_wide_admin(admin):
        visible = {u.id for u in hierarchy.managed_users(admin.id)} | {admin.id}
        rows = [(grant, user) for grant, user in rows if user.id in visible]
    return [UserPermissionResponse.from_grant(grant, user) for grant, user in rows]


@router.post("/admin/permissions/bulk-update", response_model=BulkOperationResult)
def bulk_update_permissions(
    body: BulkPermissionUpdate,
    admin: User = Depends(get_current_admin),
    permissions: PermissionService = Depends(get_permission_service),
):
    results = permissions.bulk_set_grants(body.user_ids, body.permissions, admin.id)
    return _bulk_result("Bulk permission update", results)


@router.post("/admin/permissions/bulk-remove", response_model=BulkOperationResult)
def bulk_remove_permissions(
    body: BulkPermissionRemove,
    admin: User = Depends(get_current_admin),
    permissions: PermissionService = Depends(get_permission_service),
):
    results = permissions.bulk_remove_grants(
        body.user_ids,
        admin.id,
        modules=body.modules,
        remove_all=body.remove_all,
    )
    return _bulk_result("Bulk permission removal", results)


@router.get("/admin/users/{user_id}/permissions", response_model=List[UserPermissionResponse])
def get_user_permissions(
    user_id: int,
    admin: User = Depends(get_current_admin),
    permissions: PermissionService = Depends(get_permission_service),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
):
    target = hierarchy.require_managed_user(admin.id, user_id)
    return [UserPermissionResponse.from_grant(g, target) for g in permissions.get_grants(user_id)]


@router.get("/admin/users/{user_id}/permissions/summary", response_model=UserPermissionSummary)
def get_user_permission_summary(
    user_id: int,
    admin: User = Depends(get_current_admin),
    permissions: PermissionService = Depends(get_permission_service),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
):
    hierarchy.require_managed_user(admin.id, user_id)
    return permissions.summarize(user_id)


def _assign(
    user_id: int,
    grants: List[PermissionGrantCreate],
    admin: User,
    permissions: PermissionService,
    hierarchy: UserHierarchyResolver,
    verb: str,
) -> PermissionAssignResult:
    target = hierarchy.require_managed_user(admin.id, user_id)
    if not grants:
        raise ValidationError("At least one permission is required")
    rows = permissions.set_grants(user_id, grants, admin.id)
    return PermissionAssignResult(
        message=f"Permissions {verb} successfully",
        user_id=user_id,
        permissions=[UserPermissionResponse.from_grant(g, target) for g in rows],
    )


@router.post("/admin/users/{user_id}/permissions", response_model=PermissionAssignResult)
def assign_user_permissions(
    user_id: int,
    grants: List[PermissionGrantCreate],
    admin: User = Depends(get_current_admin),
    permissions: PermissionService = Depends(get_permission_service),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
):
    """Upsert the listed modules; modules not listed keep their grants."""
    return _assign(user_id, grants, admin, permissions, hierarchy, "assigned")


@router.put("/admin/users/{user_id}/permissions", response_model=PermissionAssignResult)
def update_user_permissions(
    user_id: int,
    grants: List[PermissionGrantCreate],
    admin: User = Depends(get_current_admin),
    permissions: PermissionService = Depends(get_permission_service),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
):
    return _assign(user_id, grants, admin, permissions, hierarchy, "updated")


@router.delete("/admin/users/{user_id}/permissions", response_model=MessageResponse)
def remove_all_user_permissions(
    user_id: int,
    admin: User = Depends(get_current_admin),
    permissions: PermissionService = Depends(get_permission_service),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
):
    hierarchy.require_managed_user(admin.id, user_id)
    removed = permissions.remove_all_grants(user_id, admin.id)
    return MessageResponse(message=f"Removed {removed} permission(s)")


@router.delete("/admin/users/{user_id}/permissions/{module}", response_model=MessageResponse)
def remove_user_permission(
    user_id: int,
    module: str,
    admin: User = Depends(get_current_admin),
    permissions: PermissionService = Depends(get_permission_service),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
):
    parsed = PermissionModule.parse(module)
    if parsed is None:
        raise ValidationError(f"Unknown module: {module}")
    hierarchy.require_managed_user(admin.id, user_id)
    removed = permissions.remove_grant(user_id, parsed, admin.id)
    if removed:
        return MessageResponse(message=f"{parsed.value} permission removed")
    return MessageResponse(message=f"No {parsed.value} permission to remove")
