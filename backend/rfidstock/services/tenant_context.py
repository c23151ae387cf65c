"""
Scoped access to a tenant's isolated database.

Master DB resolves client code -> tenant.database_url; the session handed out
here is bound to that tenant's own engine and is closed on every exit path.
Sessions are never shared between operations; engines (connection pools) are
shared per database URL.

Two degradation policies sit on top of open():
- lookup(): auxiliary display data (branch/counter names). Failure -> Unavailable,
  caller substitutes None and carries on.
- enumerate_ids(): authoritative id enumerations for admins. Failure -> Unavailable,
  caller folds to [] so an outage narrows access instead of widening it.
"""
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generator, Generic, TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from rfidstock.database import engine_options
from rfidstock.exceptions import AccessLayerError, TenantUnreachable
from rfidstock.services.tenant_directory import TenantDirectory

logger = logging.getLogger(__name__)

T = TypeVar("T")

# -----------------------------------------------------------------------------
# Tenant engine pool
# One engine + session factory per tenant database_url.
# -----------------------------------------------------------------------------
_tenant_engines: Dict[str, Any] = {}
_tenant_sessions: Dict[str, sessionmaker] = {}
_pool_lock = threading.Lock()


def _session_factory_for_url(database_url: str) -> sessionmaker:
    """Get or create session factory for a tenant database_url. Thread-safe."""
    url = database_url.strip()
    with _pool_lock:
        if url not in _tenant_sessions:
            engine = create_engine(url, **engine_options(url))
            _tenant_engines[url] = engine
            _tenant_sessions[url] = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        return _tenant_sessions[url]


def dispose_tenant_engines() -> None:
    """Close every pooled tenant connection (shutdown, tests)."""
    with _pool_lock:
        for engine in _tenant_engines.values():
            engine.dispose()
        _tenant_engines.clear()
        _tenant_sessions.clear()


# -----------------------------------------------------------------------------
# Result of a store call: Ok(value) | Unavailable(reason) | Fatal(error)
# -----------------------------------------------------------------------------

class StoreResult(ABC, Generic[T]):
    ok = False

    @abstractmethod
    def unwrap_or(self, default: T) -> T:
        """The value, or default when the store was unavailable."""


@dataclass
class Ok(StoreResult[T]):
    value: T
    ok = True

    def unwrap_or(self, default: T) -> T:
        return self.value


@dataclass
class Unavailable(StoreResult[T]):
    """Tenant missing, inactive, or store unreachable. Degrade, do not abort."""
    reason: str

    def unwrap_or(self, default: T) -> T:
        return default


@dataclass
class Fatal(StoreResult[T]):
    """Bug in the caller's query function. Never degraded."""
    error: Exception

    def unwrap_or(self, default: T) -> T:
        raise self.error


class TenantContextFactory:
    """Opens scoped sessions on tenant databases for one request's master session."""

    def __init__(self, master_db: Session):
        self.directory = TenantDirectory(master_db)

    @contextmanager
    def open(self, client_code: str) -> Generator[Session, None, None]:
        """
        Yield a session on the tenant's database.

        Raises TenantNotFound / TenantInactive from the directory, and
        TenantUnreachable when the tenant has no database or the connection
        probe fails (including connect timeout).
        """
        tenant = self.directory.require_active(client_code)
        if not (tenant.database_url and tenant.database_url.strip()):
            raise TenantUnreachable(tenant.client_code, "Tenant database not provisioned")

        try:
            factory = _session_factory_for_url(tenant.database_url)
            db = factory()
        except (SQLAlchemyError, OSError) as e:
            raise TenantUnreachable(tenant.client_code, str(e)) from e
        try:
            try:
                db.execute(text("SELECT 1"))  # force connection
            except (SQLAlchemyError, OSError) as e:
                logger.warning("Tenant DB unreachable client_code=%s: %s", tenant.client_code, e)
                raise TenantUnreachable(tenant.client_code, str(e)) from e
            yield db
        finally:
            db.close()

    def _run(self, client_code: str, fn: Callable[[Session], T]) -> StoreResult[T]:
        try:
            with self.open(client_code) as db:
                return Ok(fn(db))
        except AccessLayerError as e:
            return Unavailable(e.detail)
        except (SQLAlchemyError, OSError) as e:
            return Unavailable(str(e))
        except Exception as e:
            logger.exception("Tenant store query failed for client_code=%s", client_code)
            return Fatal(e)

    def lookup(self, client_code: str, fn: Callable[[Session], T]) -> StoreResult[T]:
        """Auxiliary read; Unavailable means "show without it"."""
        result = self._run(client_code, fn)
        if isinstance(result, Unavailable):
            logger.debug("Auxiliary lookup unavailable for %s: %s", client_code, result.reason)
        return result

    def enumerate_ids(self, client_code: str, fn: Callable[[Session], T]) -> StoreResult[T]:
        """Authoritative read; Unavailable must be treated as "nothing accessible"."""
        result = self._run(client_code, fn)
        if isinstance(result, Unavailable):
            logger.warning("Failing closed for %s, tenant store unavailable: %s", client_code, result.reason)
        return result
