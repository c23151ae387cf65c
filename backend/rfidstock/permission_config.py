"""
Permission constants for the module x action capability matrix.

Modules are a closed set. Internal callers pass PermissionModule members;
free-form strings are only parsed at the HTTP boundary.
"""
from enum import Enum
from typing import Optional


class PermissionModule(str, Enum):
    PRODUCT = "Product"
    RFID = "RFID"
    INVOICE = "Invoice"
    REPORTS = "Reports"
    STOCK_TRANSFER = "StockTransfer"
    STOCK_VERIFICATION = "StockVerification"
    PRODUCT_IMAGE = "ProductImage"
    USER = "User"
    ADMIN = "Admin"

    @classmethod
    def parse(cls, value) -> Optional["PermissionModule"]:
        """Exact module name (as listed) or None. Matching is case-sensitive."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class PermissionAction(str, Enum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    EXPORT = "export"
    IMPORT = "import"


# The six capability columns on UserPermission, in display order.
CAPABILITY_FIELDS = (
    "can_view",
    "can_create",
    "can_update",
    "can_delete",
    "can_export",
    "can_import",
)

# Action string (lower-cased) -> capability column. edit and update share a flag.
ACTION_FIELDS = {
    "view": "can_view",
    "create": "can_create",
    "edit": "can_update",
    "update": "can_update",
    "delete": "can_delete",
    "export": "can_export",
    "import": "can_import",
}

# HTTP method -> action, for routers guarded by require_permission without an explicit action.
METHOD_ACTIONS = {
    "GET": PermissionAction.VIEW,
    "POST": PermissionAction.CREATE,
    "PUT": PermissionAction.EDIT,
    "PATCH": PermissionAction.EDIT,
    "DELETE": PermissionAction.DELETE,
}

AVAILABLE_MODULES = tuple(m.value for m in PermissionModule)


def capability_field(action: str) -> Optional[str]:
    """Capability column for an action string, or None when the action is unknown."""
    if not isinstance(action, str):
        return None
    return ACTION_FIELDS.get(action.strip().lower())
