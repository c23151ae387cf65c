"""
Branch / counter access schemas
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class UserAccessInfo(BaseModel):
    """A user's branch and counter scope. Names are None when the tenant store is unavailable."""
    user_id: int
    user_name: str
    is_admin: bool
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    counter_id: Optional[int] = None
    counter_name: Optional[str] = None
    client_code: str
    accessible_branch_ids: List[int] = []
    accessible_counter_ids: List[int] = []


class BranchResponse(BaseModel):
    branch_id: int
    branch_name: str
    client_code: str

    model_config = ConfigDict(from_attributes=True)


class CounterResponse(BaseModel):
    counter_id: int
    counter_name: str
    branch_id: int
    client_code: str

    model_config = ConfigDict(from_attributes=True)
