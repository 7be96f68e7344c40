"""
Shared fixtures: an in-memory SQLite order store and an API client bound to it.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from order_service.main import app, get_repository
from order_service.repository import OrderRepository
from order_service.schema import create_schema


@pytest.fixture
def engine():
    # One shared connection, usable from the TestClient worker threads
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine):
    return OrderRepository(engine)


@pytest.fixture
def client(repository):
    app.dependency_overrides[get_repository] = lambda: repository
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def order_payload():
    return {
        "numeroPedido": "O1",
        "valorTotal": 100.5,
        "dataCriacao": "2024-01-01",
        "items": [{"idItem": "7", "quantidadeItem": 2, "valorItem": 50.25}],
    }
