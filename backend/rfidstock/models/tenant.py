"""
Tenant registry model (master database)
"""
from sqlalchemy import Column, String, Text, DateTime, Integer, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rfidstock.database_master import MasterBase

INACTIVE_STATUSES = ("suspended", "cancelled")


class Tenant(MasterBase):
    """Tenant (client organization). Never deleted; deactivated via status."""
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(150), nullable=False)

    # Database connection info for the tenant's isolated store
    database_name = Column(String(255), nullable=True)
    database_url = Column(Text, nullable=True)  # Should be encrypted

    # Status
    status = Column(String(20), default="active", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    users = relationship("User", back_populates="tenant")

    __table_args__ = (
        CheckConstraint("status IN ('trial', 'active', 'suspended', 'cancelled')", name="valid_status"),
    )

    @property
    def is_active(self) -> bool:
        return (self.status or "").lower() not in INACTIVE_STATUSES
