"""
Tenant database schema base and engine options shared by every engine we create.

Tenant DB: one per client code (branches, counters, stock). Never holds users
or permission grants; those live in the master DB (see database_master).
"""
from typing import Any, Dict

from sqlalchemy import pool
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base

from rfidstock.config import settings

# Base class for tenant database models
Base = declarative_base()


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    create_engine kwargs for a database URL.

    Postgres: QueuePool with pre-ping and bounded connect/statement timeouts.
    SQLite (dev/tests): default pool, busy timeout, usable across threads.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.TENANT_CONNECT_TIMEOUT_SECONDS,
            },
            "echo": settings.DEBUG,
        }
    return {
        "poolclass": pool.QueuePool,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": settings.TENANT_CONNECT_TIMEOUT_SECONDS,
        "pool_pre_ping": True,  # Verify connections before using
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "connect_args": {
            "connect_timeout": settings.TENANT_CONNECT_TIMEOUT_SECONDS,
            "options": f"-c statement_timeout={settings.TENANT_STATEMENT_TIMEOUT_MS}",
        },
        "echo": settings.DEBUG,
    }
