"""
Shared pytest fixtures for the BU Command Center test suite.

Provides:
    - app: Flask application (session-scoped, in-memory SQLite, temp attachment dir)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - tenant / other_tenant: two active business units
    - headers / other_headers: X-Tenant-ID headers for API calls
    - project / member: pre-created Project and TeamMember for ``tenant``
"""

import pytest

from command_center import create_app
from command_center.models import db as _db
from command_center.models.project import Project
from command_center.models.team import TeamMember
from command_center.models.tenant import Tenant


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app(tmp_path_factory):
    """Create the Flask application once per test session."""
    application = create_app("testing")
    application.config["ATTACHMENT_STORAGE_DIR"] = str(tmp_path_factory.mktemp("storage"))
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Tenants ──────────────────────────────────────────────────────────────


def make_tenant(name: str, slug: str, is_active: bool = True) -> Tenant:
    t = Tenant(name=name, slug=slug, is_active=is_active)
    _db.session.add(t)
    _db.session.commit()
    return t


@pytest.fixture()
def tenant():
    return make_tenant("Business Unit A", "bu-a")


@pytest.fixture()
def other_tenant():
    return make_tenant("Business Unit B", "bu-b")


@pytest.fixture()
def headers(tenant):
    return {"X-Tenant-ID": str(tenant.id)}


@pytest.fixture()
def other_headers(other_tenant):
    return {"X-Tenant-ID": str(other_tenant.id)}


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def project(tenant):
    p = Project(tenant_id=tenant.id, name="Core Banking Revamp", budget=1000, actual_cost=400, cogs=300)
    _db.session.add(p)
    _db.session.commit()
    return p


@pytest.fixture()
def member(tenant):
    m = TeamMember(tenant_id=tenant.id, name="Alya Putri", squad="Delivery")
    _db.session.add(m)
    _db.session.commit()
    return m
