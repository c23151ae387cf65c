"""
Tenant registry lookups (master database). Read-only; tenants are created by
the registration flow and deactivated by status, never deleted.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from rfidstock.exceptions import TenantInactive, TenantNotFound
from rfidstock.models.tenant import Tenant

logger = logging.getLogger(__name__)


def normalize_client_code(client_code: Optional[str]) -> str:
    return (client_code or "").strip()


class TenantDirectory:
    """Maps a client code to its tenant record and store location."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, client_code: str) -> Optional[Tenant]:
        code = normalize_client_code(client_code)
        if not code:
            return None
        return self.db.query(Tenant).filter(Tenant.client_code == code).first()

    def is_active(self, client_code: str) -> bool:
        tenant = self.resolve(client_code)
        return tenant is not None and tenant.is_active

    def require_active(self, client_code: str) -> Tenant:
        """Tenant record for an active tenant; raises TenantNotFound / TenantInactive."""
        tenant = self.resolve(client_code)
        if tenant is None:
            raise TenantNotFound(client_code)
        if not tenant.is_active:
            logger.info("Tenant %s is %s; refusing store access", tenant.client_code, tenant.status)
            raise TenantInactive(tenant.client_code)
        return tenant
