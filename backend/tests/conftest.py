import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.core.security import create_access_token
from app.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        storage_dir=str(tmp_path / "uploads"),
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'videos.db'}",
        secret_key="test-secret",
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def auth(settings):
    """Authorization header for the given username."""

    def _headers(username: str) -> dict:
        token = create_access_token({"sub": username}, settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers
