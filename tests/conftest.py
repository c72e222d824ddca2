"""Shared fixtures: in-memory SQLite, TestClient with get_db overridden."""

import os

# Harus di-set sebelum gis_app diimport
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_COST", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_DEBUG", "0")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gis_app import config, rate_limit
from gis_app.auth import get_password_hash
from gis_app.database import Base, get_db
from gis_app.main import app
from gis_app.models import User

ADMIN_EMAIL = "admin@cirendeu.com"
ADMIN_PASSWORD = "admin123"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
GIF_BYTES = b"GIF89a" + b"\x00" * 64


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_PATH", str(path))
    return path


@pytest.fixture(autouse=True)
def fresh_rate_limits():
    rate_limit.reset()
    yield
    rate_limit.reset()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db):
    user = User(name="Administrator", email=ADMIN_EMAIL, password_hash=get_password_hash(ADMIN_PASSWORD))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_client(client, admin):
    resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return client


@pytest.fixture
def facility_payload():
    return {
        "name": "Masjid Al-Ikhlas",
        "address": "Jl. Cirendeu Raya",
        "description": "Masjid jami",
        "latitude": -6.3088,
        "longitude": 106.7702,
        "category": "Masjid",
    }
