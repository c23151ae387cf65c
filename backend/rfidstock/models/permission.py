"""
UserPermission model: one row per (user, module) with six capability flags
"""
from sqlalchemy import Column, String, Boolean, ForeignKey, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rfidstock.database_master import MasterBase
from rfidstock.permission_config import CAPABILITY_FIELDS


class UserPermission(MasterBase):
    """Module grant for a user. Absence of a row means no capability on that module."""
    __tablename__ = "user_permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_code = Column(String(50), nullable=False)
    module = Column(String(50), nullable=False)

    can_view = Column(Boolean, default=False, nullable=False)
    can_create = Column(Boolean, default=False, nullable=False)
    can_update = Column(Boolean, default=False, nullable=False)
    can_delete = Column(Boolean, default=False, nullable=False)
    can_export = Column(Boolean, default=False, nullable=False)
    can_import = Column(Boolean, default=False, nullable=False)

    created_on = Column(DateTime(timezone=True), server_default=func.now())
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    user = relationship("User", back_populates="permissions", foreign_keys=[user_id])

    __table_args__ = (
        UniqueConstraint("user_id", "module", name="uq_user_permissions_user_module"),
    )

    @property
    def permission_count(self) -> int:
        return sum(1 for f in CAPABILITY_FIELDS if getattr(self, f))
