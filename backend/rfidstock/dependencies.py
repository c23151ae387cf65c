"""
Request dependencies: bearer-token identity, service wiring and route guards.

Identity and permission grants live in the master DB only. Tenant stores are
reached through TenantContextFactory and are never opened just to authorize a
request.
"""
import logging
from enum import Enum
from typing import Callable, Optional, Union

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from rfidstock.database_master import get_master_db
from rfidstock.models.user import User
from rfidstock.permission_config import METHOD_ACTIONS, PermissionAction, PermissionModule
from rfidstock.services.access_control import AccessControlService
from rfidstock.services.permission_service import PermissionService
from rfidstock.services.tenant_context import TenantContextFactory
from rfidstock.services.tenant_directory import TenantDirectory, normalize_client_code
from rfidstock.services.user_directory import UserDirectory
from rfidstock.services.user_hierarchy import UserHierarchyResolver
from rfidstock.utils.auth_internal import CLAIM_CLIENT_CODE, CLAIM_SUB, decode_internal_token

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    master_db: Session = Depends(get_master_db),
) -> User:
    """
    Require valid JWT; return the active user it names. Raises 401 if no/invalid
    token or unknown/inactive user, 403 if the token's client code does not match
    the user's tenant or the tenant is suspended.
    """
    auth = request.headers.get("Authorization")
    token = (auth[7:].strip() if auth and auth.startswith("Bearer ") else None) or None
    if not token:
        raise _unauthorized("Not authenticated")
    payload = decode_internal_token(token)
    if not payload:
        raise _unauthorized("Invalid token")
    try:
        user_id = int(payload[CLAIM_SUB])
    except (KeyError, ValueError, TypeError):
        raise _unauthorized("Invalid token")

    user = UserDirectory(master_db).get_active(user_id)
    if user is None:
        raise _unauthorized("User not found or inactive")

    if normalize_client_code(payload.get(CLAIM_CLIENT_CODE)) != user.client_code:
        logger.warning("Token client code does not match user %s tenant %s", user.id, user.client_code)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied for this tenant")
    if not TenantDirectory(master_db).is_active(user.client_code):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account suspended. Please contact support.",
        )
    return user


def get_current_admin(user: User = Depends(get_current_user)) -> User:
    """Require an authenticated admin (MainAdmin or Admin)."""
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


# -----------------------------------------------------------------------------
# Services (one per request, bound to the request's master session)
# -----------------------------------------------------------------------------

def get_tenant_context(master_db: Session = Depends(get_master_db)) -> TenantContextFactory:
    return TenantContextFactory(master_db)


def get_access_control(
    master_db: Session = Depends(get_master_db),
    tenant_context: TenantContextFactory = Depends(get_tenant_context),
) -> AccessControlService:
    return AccessControlService(master_db, tenant_context)


def get_permission_service(master_db: Session = Depends(get_master_db)) -> PermissionService:
    return PermissionService(master_db)


def get_user_hierarchy(master_db: Session = Depends(get_master_db)) -> UserHierarchyResolver:
    return UserHierarchyResolver(master_db)


# -----------------------------------------------------------------------------
# Route guards
# -----------------------------------------------------------------------------

def _name(value: Union[str, Enum]) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def require_permission(
    module: PermissionModule,
    action: Optional[PermissionAction] = None,
) -> Callable[..., User]:
    """
    Dependency factory for business routers:

        @router.post("/products", dependencies=[Depends(require_permission(PermissionModule.PRODUCT))])

    Without an explicit action the HTTP method decides (GET view, POST create,
    PUT/PATCH edit, DELETE delete). Admins bypass module checks.
    """
    def _dependency(
        request: Request,
        user: User = Depends(get_current_user),
        permissions: PermissionService = Depends(get_permission_service),
    ) -> User:
        if user.is_admin:
            return user
        act = action or METHOD_ACTIONS.get(request.method.upper())
        if act is None or not permissions.has_permission(user.id, module, _name(act)):
            logger.info(
                "User %s lacks %s.%s (%s %s)",
                user.id, _name(module), _name(act) if act else "?", request.method, request.url.path,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission {_name(module)}.{_name(act) if act else request.method} required",
            )
        return user

    return _dependency


def _int_param(request: Request, name: str) -> Optional[int]:
    raw = request.path_params.get(name, request.query_params.get(name))
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {name}")


def require_branch_access(
    branch_param: str = "branch_id",
    counter_param: str = "counter_id",
) -> Callable[..., User]:
    """
    Dependency factory guarding routes that carry a branch (and optionally a
    counter) id in the path or query string. A scoped user must match both
    when both are given.
    """
    def _dependency(
        request: Request,
        user: User = Depends(get_current_user),
        access: AccessControlService = Depends(get_access_control),
    ) -> User:
        branch_id = _int_param(request, branch_param)
        counter_id = _int_param(request, counter_param)
        if branch_id is not None and counter_id is not None:
            allowed = access.can_access_branch_and_counter(user.id, branch_id, counter_id)
        elif branch_id is not None:
            allowed = access.can_access_branch(user.id, branch_id)
        elif counter_id is not None:
            allowed = access.can_access_counter(user.id, counter_id)
        else:
            allowed = True
        if not allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied to this branch or counter")
        return user

    return _dependency
