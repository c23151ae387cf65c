"""
Master database connection (control plane).

Stores the tenant registry, user accounts, permission grants and the activity
log. Permission checks only ever touch this database; tenant stores are opened
through TenantContextFactory.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from rfidstock.config import settings
from rfidstock.database import engine_options

master_engine = create_engine(settings.MASTER_DATABASE_URL, **engine_options(settings.MASTER_DATABASE_URL))

# Session factory for master database
MasterSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=master_engine)

# Base class for master database models
MasterBase = declarative_base()


def get_master_db():
    """
    Dependency for FastAPI to get master database session
    """
    db = MasterSessionLocal()
    try:
        yield db
    finally:
        db.close()
