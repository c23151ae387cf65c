"""
Admin user hierarchy API

User details, activation and the admin -> sub-user hierarchy. Accounts are
never hard-deleted; deactivation is the soft delete.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rfidstock.database_master import get_master_db
from rfidstock.dependencies import get_access_control, get_current_admin, get_user_hierarchy
from rfidstock.exceptions import AuthorizationDenied, ValidationError
from rfidstock.models.user import User
from rfidstock.schemas.access import BranchResponse, CounterResponse
from rfidstock.schemas.user import UserHierarchyResponse, UserResponse
from rfidstock.services.access_control import AccessControlService
from rfidstock.services.activity_logging import ActivityLogger
from rfidstock.services.user_directory import UserDirectory
from rfidstock.services.user_hierarchy import UserHierarchyResolver

logger = logging.getLogger(__name__)

router = APIRouter()


def _hierarchy_response(admin: User, users: List[User]) -> UserHierarchyResponse:
    return UserHierarchyResponse(
        admin_user_id=admin.id,
        admin_user_name=admin.display_name,
        total=len(users),
        users=[UserResponse.model_validate(u) for u in users],
    )


@router.get("/admin/user-hierarchy", response_model=UserHierarchyResponse)
def get_user_hierarchy_for_admin(
    admin: User = Depends(get_current_admin),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
):
    """Users the caller manages."""
    return _hierarchy_response(admin, hierarchy.managed_users(admin.id))


@router.get("/admin/user-hierarchy/admin/{admin_user_id}", response_model=UserHierarchyResponse)
def get_user_hierarchy_by_admin(
    admin_user_id: int,
    admin: User = Depends(get_current_admin),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
):
    """Another admin's sub-users. Main admin only."""
    if not hierarchy.is_main_admin(admin.id):
        raise AuthorizationDenied("Only the main admin can view other admins' users.")
    target = hierarchy.require_managed_user(admin.id, admin_user_id)
    if not target.is_admin:
        raise ValidationError("User is not an admin")
    return _hierarchy_response(target, hierarchy.managed_users(target.id))


@router.get("/admin/branches", response_model=List[BranchResponse])
def list_admin_branches(
    admin: User = Depends(get_current_admin),
    access: AccessControlService = Depends(get_access_control),
):
    """Branches of the caller's organization. Empty when the tenant database is unavailable."""
    return access.list_accessible_branches(admin.id)


@router.get("/admin/branches/{branch_id}/counters", response_model=List[CounterResponse])
def list_admin_branch_counters(
    branch_id: int,
    admin: User = Depends(get_current_admin),
    access: AccessControlService = Depends(get_access_control),
):
    """Counters of one branch. Empty when the tenant database is unavailable."""
    return access.list_accessible_counters(admin.id, branch_id)


# Declared before /admin/users/{user_id} so "by-location" is not taken for an id.
@router.get("/admin/users/by-location", response_model=List[UserResponse])
def list_users_by_location(
    branch_id: Optional[int] = Query(None, alias="branchId"),
    counter_id: Optional[int] = Query(None, alias="counterId"),
    admin: User = Depends(get_current_admin),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
):
    """Managed users assigned to a branch and/or counter."""
    return hierarchy.users_by_location(admin.id, branch_id, counter_id)


@router.get("/admin/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    admin: User = Depends(get_current_admin),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
):
    return hierarchy.require_managed_user(admin.id, user_id)


def _set_active(
    user_id: int,
    active: bool,
    admin: User,
    hierarchy: UserHierarchyResolver,
    db: Session,
) -> User:
    target = hierarchy.require_managed_user(admin.id, user_id)
    if target.id == admin.id and not active:
        raise ValidationError("You cannot deactivate your own account")
    if target.is_main_admin and not admin.is_main_admin:
        raise AuthorizationDenied("Only the main admin can change the main admin account.")
    if target.is_active == active:
        return target

    UserDirectory(db).set_active(target, active)
    ActivityLogger(db).log(
        admin.id,
        admin.client_code,
        "User",
        "Activate" if active else "Deactivate",
        f"{'Activated' if active else 'Deactivated'} user {target.user_name}",
        table_name="users",
        record_id=target.id,
        old_values={"is_active": not active},
        new_values={"is_active": active},
    )
    db.commit()
    db.refresh(target)
    return target


@router.put("/admin/users/{user_id}/activate", response_model=UserResponse)
def activate_user(
    user_id: int,
    admin: User = Depends(get_current_admin),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
    db: Session = Depends(get_master_db),
):
    return _set_active(user_id, True, admin, hierarchy, db)


@router.put("/admin/users/{user_id}/deactivate", response_model=UserResponse)
def deactivate_user(
    user_id: int,
    admin: User = Depends(get_current_admin),
    hierarchy: UserHierarchyResolver = Depends(get_user_hierarchy),
    db: Session = Depends(get_master_db),
):
    """Soft delete. Grants are kept so reactivation restores the user's access."""
    return _set_active(user_id, False, admin, hierarchy, db)
