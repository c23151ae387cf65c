"""
Permission matrix schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from rfidstock.permission_config import PermissionModule
from rfidstock.schemas.access import UserAccessInfo


# Request bodies accept camelCase (canView, userIds) as well as snake_case.
_REQUEST_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =====================================================
# Grant schemas
# =====================================================

class PermissionGrantCreate(BaseModel):
    """One module's capabilities. Unknown module names are rejected with 400."""
    module: PermissionModule
    can_view: bool = False
    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_export: bool = False
    can_import: bool = False

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "module": "Product",
                "can_view": True,
                "can_create": True,
                "can_edit": False,
                "can_delete": False,
                "can_export": True,
                "can_import": False,
            }
        },
    )


class UserPermissionResponse(BaseModel):
    """Grant row. can_edit is the stored update flag."""
    id: int
    user_id: int
    client_code: str
    module: str
    can_view: bool
    can_create: bool
    can_edit: bool
    can_delete: bool
    can_export: bool
    can_import: bool
    created_on: Optional[datetime] = None
    created_by: Optional[int] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None

    @classmethod
    def from_grant(cls, grant, user=None) -> "UserPermissionResponse":
        return cls(
            id=grant.id,
            user_id=grant.user_id,
            client_code=grant.client_code,
            module=grant.module,
            can_view=grant.can_view,
            can_create=grant.can_create,
            can_edit=grant.can_update,
            can_delete=grant.can_delete,
            can_export=grant.can_export,
            can_import=grant.can_import,
            created_on=grant.created_on,
            created_by=grant.created_by,
            user_name=user.display_name if user is not None else None,
            user_email=user.email if user is not None else None,
        )


# =====================================================
# Summary schemas
# =====================================================

class ModulePermissionSummary(BaseModel):
    module: str
    can_view: bool
    can_create: bool
    can_edit: bool
    can_delete: bool
    can_export: bool
    can_import: bool
    permission_count: int


class UserPermissionSummary(BaseModel):
    """total_permissions is the ceiling (rows x 6); active_permissions counts granted flags."""
    user_id: int
    user_name: str
    user_email: str
    total_permissions: int
    active_permissions: int
    module_summaries: List[ModulePermissionSummary] = []


# =====================================================
# Bulk schemas
# =====================================================

class BulkPermissionUpdate(BaseModel):
    model_config = _REQUEST_CONFIG

    user_ids: List[int] = Field(..., min_length=1)
    permissions: List[PermissionGrantCreate] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_modules(self):
        modules = [p.module.value for p in self.permissions]
        duplicates = sorted({m for m in modules if modules.count(m) > 1})
        if duplicates:
            raise ValueError(f"Duplicate module in payload: {', '.join(duplicates)}")
        return self


class BulkPermissionRemove(BaseModel):
    model_config = _REQUEST_CONFIG

    user_ids: List[int] = Field(..., min_length=1)
    modules: List[PermissionModule] = []
    remove_all: bool = False

    @model_validator(mode="after")
    def _modules_or_remove_all(self):
        if not self.remove_all and not self.modules:
            raise ValueError("Either modules or remove_all must be provided")
        if self.remove_all and self.modules:
            raise ValueError("modules must be empty when remove_all is true")
        return self


class BulkItemResult(BaseModel):
    user_id: int
    success: bool
    error: Optional[str] = None


class BulkOperationResult(BaseModel):
    message: str
    succeeded: int
    failed: int
    results: List[BulkItemResult]


# =====================================================
# Misc responses
# =====================================================

class MessageResponse(BaseModel):
    message: str


class PermissionAssignResult(BaseModel):
    message: str
    user_id: int
    permissions: List[UserPermissionResponse] = []


class PermissionCheckResult(BaseModel):
    user_id: int
    module: str
    action: str
    has_permission: bool
    checked_at: datetime


class UserPermissionDetails(BaseModel):
    """Everything a client needs after login to shape its UI."""
    permissions: List[UserPermissionResponse] = []
    permission_summary: UserPermissionSummary
    access_info: Optional[UserAccessInfo] = None
    available_modules: List[str] = []
