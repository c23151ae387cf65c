"""
User and hierarchy schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: int
    client_code: str
    user_name: str
    email: str
    full_name: Optional[str] = None
    is_admin: bool
    user_type: str
    admin_user_id: Optional[int] = None
    branch_id: Optional[int] = None
    counter_id: Optional[int] = None
    is_active: bool
    created_on: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserHierarchyResponse(BaseModel):
    """Users an admin manages (tenant-wide admins: everyone else in the tenant)."""
    admin_user_id: int
    admin_user_name: str
    total: int
    users: List[UserResponse] = []
