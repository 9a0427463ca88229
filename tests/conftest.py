import pytest
from fastapi.testclient import TestClient

from code_merger.config import get_settings
from code_merger.main import app


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("MAX_FILE_SIZE", "1024")
    monkeypatch.setenv("MAX_TOTAL_SIZE", "2048")
    get_settings.cache_clear()

    # entering the client runs the lifespan, which builds a fresh store
    with TestClient(app) as test_client:
        yield test_client

    get_settings.cache_clear()
