import os

# Tests always run against an in-memory sqlite database, never the .env database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["LOCAL_STORE_PATH"] = ":memory:"

import pytest
from fastapi.testclient import TestClient

from trashdrop.core.security import get_current_user
from trashdrop.database.connection import SessionLocal, engine
from trashdrop.database.session import get_db
from trashdrop.models.base import Base
from trashdrop.models import bag_order, location, pickup, points, report, rewards  # noqa: F401
from trashdrop.schemas.user import AuthenticatedUser, UserRole


@pytest.fixture
def db_session():
    """테이블을 새로 만든 인메모리 DB 세션"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user():
    return AuthenticatedUser(id="user-1", email="user@example.com", role=UserRole.USER)


@pytest.fixture
def collector():
    return AuthenticatedUser(id="collector-1", email="collector@example.com", role=UserRole.COLLECTOR)


@pytest.fixture
def admin():
    return AuthenticatedUser(id="admin-1", email="admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
def app(db_session):
    from trashdrop.main import create_app

    app = create_app()

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def login(app):
    """login(user) 이후의 요청은 해당 사용자로 인증됨"""

    def _login(current_user):
        app.dependency_overrides[get_current_user] = lambda: current_user
        return current_user

    return _login


@pytest.fixture
def client(app, login, user):
    login(user)
    return TestClient(app)
