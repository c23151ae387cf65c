"""
Database models for RFID Stock
"""
from rfidstock.database import Base
from rfidstock.database_master import MasterBase

# Master (control plane)
from .tenant import Tenant
from .user import User, UserActivity
from .permission import UserPermission

# Tenant store
from .company import BranchMaster, CounterMaster

__all__ = [
    "Base",
    "MasterBase",
    "Tenant",
    "User",
    "UserActivity",
    "UserPermission",
    "BranchMaster",
    "CounterMaster",
]
