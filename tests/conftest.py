"""
Pytest fixtures for testing
"""
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.dialects.postgresql import JSONB

from communityfund.api.deps import get_db
from communityfund.auth import ROLE_CMB, ROLE_PF, hash_password
from communityfund.infrastructure.db.session import Base
from communityfund.infrastructure.db.models import Commune, Community, FiscalYear, User
from communityfund.main import app


@pytest.fixture
def db_engine():
    """In-memory SQLite engine for tests, with JSONB→JSON mapping.

    StaticPool keeps the single connection shared with the TestClient thread.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite has no JSONB; remap to JSON for tests
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine)


@pytest.fixture
def db_session(session_factory) -> Session:
    """Create database session for tests"""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def geography(db_session):
    """Two communes, three communities and fiscal year 2025"""
    db_session.add_all([
        Commune(id=1, name="Hong Ha"),
        Commune(id=2, name="A Roang"),
        Community(id=10, name="Ka Lo", commune_id=1),
        Community(id=11, name="Pa Rinh", commune_id=1),
        Community(id=20, name="A Ka", commune_id=2),
        FiscalYear(id=1, year=2025, start_date=date(2025, 1, 1), end_date=date(2025, 12, 31)),
    ])
    db_session.commit()
    return {"commune_id": 1, "community_id": 10, "fiscal_year_id": 1}


@pytest.fixture
def cmb_user(db_session, geography):
    user = User(
        id=1, email="cmb@kalo.vn", password_hash=hash_password("secret"),
        full_name="Ho Van Minh", role=ROLE_CMB, community_id=10, commune_id=1,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def pf_user(db_session, geography):
    user = User(
        id=2, email="pf@province.vn", password_hash=hash_password("secret"),
        full_name="Tran Thi Lan", role=ROLE_PF,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def client(session_factory):
    """TestClient whose requests share the in-memory database"""
    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Logs the test client in as the given user"""
    def _login(email: str, password: str = "secret"):
        response = client.post("/login", data={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response
    return _login
