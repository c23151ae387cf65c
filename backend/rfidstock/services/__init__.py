"""
Tenant resolution and access-control services for RFID Stock
"""
from .access_control import AccessControlService
from .permission_service import PermissionService
from .tenant_context import TenantContextFactory
from .tenant_directory import TenantDirectory
from .user_directory import UserDirectory
from .user_hierarchy import UserHierarchyResolver

__all__ = [
    "AccessControlService",
    "PermissionService",
    "TenantContextFactory",
    "TenantDirectory",
    "UserDirectory",
    "UserHierarchyResolver",
]
