"""
Pytest configuration for Auth Service tests.

Points the service at a throwaway SQLite database before the application
modules are imported, since the engine is built at import time.
"""
import os
import tempfile

_tmp_dir = tempfile.mkdtemp(prefix="auth_service_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test_auth.db')}"
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-at-least-32-bytes")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from auth_service.main import app  # noqa: E402
from auth_service.db import Base, engine, SessionLocal  # noqa: E402
from auth_service.models import User  # noqa: E402
from auth_service.auth import hash_password, create_access_token  # noqa: E402


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture(autouse=True)
def reset_database():
    # Drop all tables and recreate them before each test
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def ensure_user(username="owner", email="owner@example.com", password="Secret123!", is_active=True):
    db = SessionLocal()
    try:
        u = db.query(User).filter(User.username == username).first()
        if not u:
            u = User(username=username, email=email, password=hash_password(password), is_active=is_active)
            db.add(u)
            db.commit()
        # return stable scalar values to avoid DetachedInstance
        return {"id": u.id, "username": username, "email": email, "password": password}
    finally:
        db.close()


def auth_header_for(username: str):
    token = create_access_token(username)
    return {"Authorization": f"Bearer {token}"}
