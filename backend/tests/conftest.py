"""
Pytest fixtures for RFID Stock backend tests.

Master store: in-memory SQLite shared through StaticPool.
Tenant stores: one SQLite file per test (ACME), plus tenants whose store is
unprovisioned (BETA), unreachable (DOWN) or suspended (SUSP).
"""
import os

os.environ.setdefault("MASTER_DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rfidstock.database import Base
from rfidstock.database_master import MasterBase, get_master_db
from rfidstock.models import BranchMaster, CounterMaster, Tenant, User
from rfidstock.models.user import USER_TYPE_ADMIN, USER_TYPE_MAIN_ADMIN, USER_TYPE_USER
from rfidstock.services.tenant_context import dispose_tenant_engines
from rfidstock.utils.auth_internal import create_access_token

UNREACHABLE_URL = "sqlite:////nonexistent-rfidstock-dir/tenant.db"

# Users of tenant ACME
MAIN_ADMIN_ID = 1
SCOPED_ADMIN_ID = 2
BRANCH1_USER_ID = 3  # branch 1 / counter 1, created by the scoped admin
BRANCH2_USER_ID = 4  # branch 2 / counter 3
UNASSIGNED_USER_ID = 5
INACTIVE_USER_ID = 6
SCENARIO_USER_ID = 123  # branch 1 / counter 2
# Other tenants
BETA_ADMIN_ID = 10
BETA_USER_ID = 11
DOWN_ADMIN_ID = 20
DOWN_USER_ID = 21
SUSPENDED_USER_ID = 30
MISSING_USER_ID = 999


@pytest.fixture(scope="function")
def master_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    MasterBase.metadata.create_all(bind=engine)
    yield engine
    MasterBase.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def master_session_factory(master_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=master_engine)


@pytest.fixture(scope="function")
def tenant_url(tmp_path):
    """ACME tenant store: branches 1-2, counters 1-2 on branch 1 and counter 3 on branch 2."""
    url = f"sqlite:///{tmp_path / 'tenant_acme.db'}"
    engine = create_engine(url)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    session.add_all([
        BranchMaster(branch_id=1, branch_name="Main Branch", client_code="ACME"),
        BranchMaster(branch_id=2, branch_name="City Branch", client_code="ACME"),
    ])
    session.flush()
    session.add_all([
        CounterMaster(counter_id=1, counter_name="Counter A", branch_id=1, client_code="ACME"),
        CounterMaster(counter_id=2, counter_name="Counter B", branch_id=1, client_code="ACME"),
        CounterMaster(counter_id=3, counter_name="Counter C", branch_id=2, client_code="ACME"),
    ])
    session.commit()
    session.close()
    engine.dispose()
    return url


@pytest.fixture(autouse=True)
def _reset_tenant_pools():
    yield
    dispose_tenant_engines()


def _user(id, client_code, user_type=USER_TYPE_USER, admin_user_id=None, branch_id=None, counter_id=None, is_active=True):
    return User(
        id=id,
        client_code=client_code,
        user_name=f"user{id}",
        email=f"user{id}@{client_code.lower()}.example.com",
        full_name=f"User {id}",
        is_admin=user_type in (USER_TYPE_MAIN_ADMIN, USER_TYPE_ADMIN),
        user_type=user_type,
        admin_user_id=admin_user_id,
        branch_id=branch_id,
        counter_id=counter_id,
        is_active=is_active,
    )


@pytest.fixture(scope="function")
def db(master_session_factory, tenant_url):
    """Seeded master session."""
    session = master_session_factory()
    session.add_all([
        Tenant(client_code="ACME", name="Acme Jewellers", database_url=tenant_url, status="active"),
        Tenant(client_code="BETA", name="Beta Gold", database_url=None, status="trial"),
        Tenant(client_code="DOWN", name="Down Diamonds", database_url=UNREACHABLE_URL, status="active"),
        Tenant(client_code="SUSP", name="Suspended Silver", database_url=tenant_url, status="suspended"),
    ])
    session.flush()
    session.add_all([
        _user(MAIN_ADMIN_ID, "ACME", USER_TYPE_MAIN_ADMIN),
        _user(SCOPED_ADMIN_ID, "ACME", USER_TYPE_ADMIN, admin_user_id=MAIN_ADMIN_ID),
        _user(BRANCH1_USER_ID, "ACME", admin_user_id=SCOPED_ADMIN_ID, branch_id=1, counter_id=1),
        _user(BRANCH2_USER_ID, "ACME", admin_user_id=MAIN_ADMIN_ID, branch_id=2, counter_id=3),
        _user(UNASSIGNED_USER_ID, "ACME", admin_user_id=MAIN_ADMIN_ID),
        _user(INACTIVE_USER_ID, "ACME", admin_user_id=MAIN_ADMIN_ID, branch_id=1, counter_id=1, is_active=False),
        _user(SCENARIO_USER_ID, "ACME", admin_user_id=MAIN_ADMIN_ID, branch_id=1, counter_id=2),
        _user(BETA_ADMIN_ID, "BETA", USER_TYPE_MAIN_ADMIN),
        _user(BETA_USER_ID, "BETA", admin_user_id=BETA_ADMIN_ID, branch_id=1),
        _user(DOWN_ADMIN_ID, "DOWN", USER_TYPE_MAIN_ADMIN),
        _user(DOWN_USER_ID, "DOWN", admin_user_id=DOWN_ADMIN_ID, branch_id=1, counter_id=1),
        _user(SUSPENDED_USER_ID, "SUSP", USER_TYPE_MAIN_ADMIN),
    ])
    session.commit()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db, master_session_factory):
    """TestClient whose requests use the seeded in-memory master store."""
    from rfidstock.main import app

    def _override_master_db():
        session = master_session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_master_db] = _override_master_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user_id, client_code="ACME"):
    return {"Authorization": f"Bearer {create_access_token(user_id, client_code)}"}
