import os
import tempfile

# settings are read at import time, so point them at throwaway locations first
_TMP_DIR = tempfile.mkdtemp(prefix="surveyhub-tests-")
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOG_PATH"] = os.path.join(_TMP_DIR, "logs")
os.environ["PUBLIC_DIR"] = os.path.join(_TMP_DIR, "public")
os.environ["SECRET_KEY"] = "test-secret"

import base64

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from surveyhub.app.core.config import settings
from surveyhub.app.main import app
from surveyhub.app.services.tokens import issue_access_token
from surveyhub.db import Base
from surveyhub.db.session import enable_sqlite_foreign_keys, get_db

# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


# Override the dependency
def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + bytes(range(32))
GIF_BYTES = b"GIF89a" + bytes(range(64, 96))


def data_uri(content: bytes, subtype: str = "png") -> str:
    return f"data:image/{subtype};base64,{base64.b64encode(content).decode()}"


@pytest.fixture(autouse=True)
def test_db():
    # Create the tables
    Base.metadata.create_all(bind=engine)
    yield
    # Drop the tables
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def public_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "PUBLIC_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def auth_headers():
    def make(user_id: str = "owner-1") -> dict:
        return {"Authorization": f"Bearer {issue_access_token(user_id)}"}
    return make


@pytest.fixture
def png_uri():
    return data_uri(PNG_BYTES, "png")


@pytest.fixture
def gif_uri():
    return data_uri(GIF_BYTES, "gif")
