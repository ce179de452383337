import os
from dataclasses import replace

# Default to the in-memory backend so importing the app never touches the filesystem
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from task_api.db import SQLAlchemyRepository  # noqa: E402
from task_api.main import app  # noqa: E402
from task_api.repositories import InMemoryRepository, get_repository  # noqa: E402
from task_api.settings import get_settings, load_settings  # noqa: E402

AUTH_TOKEN = "s3cret-token"


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def client(repo):
    app.dependency_overrides[get_repository] = lambda: repo
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_enabled():
    settings = replace(load_settings(), enable_auth=True, auth_token=AUTH_TOKEN)
    app.dependency_overrides[get_settings] = lambda: settings
    yield settings
    app.dependency_overrides.pop(get_settings, None)


@pytest.fixture
def sql_repo(tmp_path):
    return SQLAlchemyRepository.from_url(f"sqlite:///{tmp_path / 'tasks.db'}")


@pytest.fixture
def sql_client(sql_repo):
    app.dependency_overrides[get_repository] = lambda: sql_repo
    yield TestClient(app)
    app.dependency_overrides.clear()
