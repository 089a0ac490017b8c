from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from krishi_quest.main import create_app
from krishi_quest.memory_repo import MemoryRepository


@pytest.fixture
def repo() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture
def client():
    app = create_app(repository=MemoryRepository(), seed=True)
    with TestClient(app) as test_client:
        yield test_client
