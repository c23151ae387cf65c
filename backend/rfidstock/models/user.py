"""
User account and activity models (master database)
"""
from sqlalchemy import Column, String, Boolean, ForeignKey, Integer, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rfidstock.database_master import MasterBase

USER_TYPE_MAIN_ADMIN = "MainAdmin"
USER_TYPE_ADMIN = "Admin"
USER_TYPE_USER = "User"


class User(MasterBase):
    """
    User account

    Admin-user hierarchy:
    - MainAdmin: registered the organization, admin_user_id is NULL.
    - Admin: created by another admin (admin_user_id set), is_admin=True.
    - User: scoped to one branch and/or counter, is_admin=False.

    Accounts are never hard-deleted (grants and activity reference them);
    is_active=False is the soft delete.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_code = Column(String(50), ForeignKey("tenants.client_code"), nullable=False, index=True)
    user_name = Column(String(100), nullable=False, unique=True)
    email = Column(String(100), nullable=False, unique=True)
    full_name = Column(String(150), nullable=True)

    is_admin = Column(Boolean, default=False, nullable=False)
    user_type = Column(String(50), default=USER_TYPE_USER, nullable=False)
    admin_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # NULL for main admin

    # Branch and counter assignment for sub-users (ids in the tenant database)
    branch_id = Column(Integer, nullable=True)
    counter_id = Column(Integer, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_on = Column(DateTime(timezone=True), server_default=func.now())
    last_login_date = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    tenant = relationship("Tenant", back_populates="users")
    admin_user = relationship("User", remote_side=[id], back_populates="sub_users")
    sub_users = relationship("User", back_populates="admin_user")
    permissions = relationship("UserPermission", back_populates="user", foreign_keys="UserPermission.user_id")

    @property
    def is_main_admin(self) -> bool:
        return self.user_type == USER_TYPE_MAIN_ADMIN

    @property
    def display_name(self) -> str:
        return self.full_name or self.user_name


class UserActivity(MasterBase):
    """Audit trail of administrative actions"""
    __tablename__ = "user_activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_code = Column(String(50), nullable=False, index=True)
    activity_type = Column(String(100), nullable=False)  # e.g. "Permission", "User"
    action = Column(String(100), nullable=False)  # e.g. "Update", "Remove", "Deactivate"
    description = Column(String(500), nullable=True)
    table_name = Column(String(100), nullable=True)
    record_id = Column(Integer, nullable=True)
    old_values = Column(Text, nullable=True)  # JSON
    new_values = Column(Text, nullable=True)  # JSON
    created_on = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")
