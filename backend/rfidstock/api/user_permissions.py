"""
Self-service permission API

What the signed-in user may do: their grants, branch/counter scope and
permission checks. Read-only; no admin role required.
"""
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, Query

from rfidstock.dependencies import get_access_control, get_current_user, get_permission_service
from rfidstock.exceptions import UserNotFound
from rfidstock.models.user import User
from rfidstock.schemas.access import UserAccessInfo
from rfidstock.schemas.permission import (
    PermissionCheckResult,
    UserPermissionDetails,
    UserPermissionResponse,
    UserPermissionSummary,
)
from rfidstock.services.access_control import AccessControlService
from rfidstock.services.permission_service import PermissionService

router = APIRouter()


@router.get("/my-permissions", response_model=List[UserPermissionResponse])
def get_my_permissions(
    user: User = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
):
    return [UserPermissionResponse.from_grant(g, user) for g in permissions.get_grants(user.id)]


@router.get("/my-permission-summary", response_model=UserPermissionSummary)
def get_my_permission_summary(
    user: User = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
):
    return permissions.summarize(user.id)


@router.get("/my-access-info", response_model=UserAccessInfo)
def get_my_access_info(
    user: User = Depends(get_current_user),
    access: AccessControlService = Depends(get_access_control),
):
    info = access.get_access_info(user.id)
    if info is None:
        raise UserNotFound(user.id)
    return info


@router.get("/check-permission", response_model=PermissionCheckResult)
def check_permission(
    module: str = Query(..., min_length=1),
    action: str = Query(..., min_length=1),
    user: User = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
):
    """Grant lookup only; unknown modules or actions answer False."""
    return PermissionCheckResult(
        user_id=user.id,
        module=module,
        action=action,
        has_permission=permissions.has_permission(user.id, module, action),
        checked_at=datetime.now(timezone.utc),
    )


@router.get("/available-modules", response_model=List[str])
def get_available_modules(user: User = Depends(get_current_user)):
    return PermissionService.list_available_modules()


@router.get("/my-accessible-branches", response_model=List[int])
def get_my_accessible_branches(
    user: User = Depends(get_current_user),
    access: AccessControlService = Depends(get_access_control),
):
    return access.accessible_branch_ids(user.id)


@router.get("/my-accessible-counters", response_model=List[int])
def get_my_accessible_counters(
    user: User = Depends(get_current_user),
    access: AccessControlService = Depends(get_access_control),
):
    return access.accessible_counter_ids(user.id)


@router.get("/my-permission-details", response_model=UserPermissionDetails)
def get_my_permission_details(
    user: User = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
    access: AccessControlService = Depends(get_access_control),
):
    return UserPermissionDetails(
        permissions=[UserPermissionResponse.from_grant(g, user) for g in permissions.get_grants(user.id)],
        permission_summary=permissions.summarize(user.id),
        access_info=access.get_access_info(user.id),
        available_modules=PermissionService.list_available_modules(),
    )
