"""
API routes for RFID Stock
"""
from .permissions import router as permissions_router
from .admin_users import router as admin_users_router
from .user_permissions import router as user_permissions_router

__all__ = [
    "permissions_router",
    "admin_users_router",
    "user_permissions_router",
]
