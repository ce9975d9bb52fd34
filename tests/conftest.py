import pytest

fastapi = pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from cashcraft.config import Settings
from cashcraft.main import create_app


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cashcraft.db'}")
    monkeypatch.setenv("AUTO_CREATE_TABLES", "1")
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("ENVIRONMENT", "test")
    return Settings()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


JANE = {
    "firstName": "Jane",
    "lastName": "Doe",
    "email": "jane@x.com",
    "phone": "0712345678",
    "password": "secret1",
}


@pytest.fixture
def jane():
    return dict(JANE)
