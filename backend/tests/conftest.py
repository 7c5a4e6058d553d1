import os

# Must be set before the app (and its cached settings) is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.deps import get_db  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    app.state.rate_limiter.clear()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.state.rate_limiter.clear()


@pytest.fixture()
def register_school(client):
    """Register a school with its admin; return ``(school, admin_headers)``."""

    def _register(slug: str, admin_email: str | None = None):
        payload = {
            "name": f"{slug.title()} Academy",
            "slug": slug,
            "admin_name": "Head Admin",
            "admin_email": admin_email or f"admin@{slug}.example.com",
            "admin_password": "password123",
        }
        response = client.post("/api/v1/schools", json=payload)
        assert response.status_code == 201, response.text
        login = client.post(
            "/api/v1/auth/login",
            json={"email": payload["admin_email"], "password": payload["admin_password"]},
            headers={"X-Tenant-Slug": slug},
        )
        assert login.status_code == 200, login.text
        headers = {
            "Authorization": f"Bearer {login.json()['access_token']}",
            "X-Tenant-Slug": slug,
        }
        return response.json()["school"], headers

    return _register
