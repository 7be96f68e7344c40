"""
HTTP tests for the order endpoints, the error responses and the health check.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from order_service import main
from order_service.database import Database
from order_service.errors import PersistenceError
from order_service.main import app, get_repository

EXPECTED_O1 = {
    "orderId": "O1",
    "value": 100.5,
    "creationDate": "2024-01-01T00:00:00.000Z",
    "items": [{"productId": 7, "quantity": 2, "price": 50.25}],
}


def test_create_order_returns_created_order(client, order_payload):
    response = client.post("/order", json=order_payload)

    assert response.status_code == 201
    assert response.json() == EXPECTED_O1


def test_get_order_after_create(client, order_payload):
    client.post("/order", json=order_payload)

    response = client.get("/order/O1")

    assert response.status_code == 200
    assert response.json() == EXPECTED_O1


def test_get_unknown_order_returns_404(client):
    response = client.get("/order/nope")

    assert response.status_code == 404
    assert response.json() == {"message": "Order not found"}


def test_unknown_order_is_logged_with_its_id(client, caplog):
    caplog.set_level(logging.INFO, logger="order_service.main")

    client.delete("/order/ghost-42")

    assert any("[Order: ghost-42]" in record.getMessage() for record in caplog.records)


def test_create_without_order_id_is_rejected_and_not_stored(client, repository, order_payload):
    del order_payload["numeroPedido"]

    response = client.post("/order", json=order_payload)

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid payload: missing required fields"}
    assert repository.get_all() == []


def test_create_with_non_numeric_product_id_is_rejected(client, order_payload):
    order_payload["items"][0]["idItem"] = "seven"

    response = client.post("/order", json=order_payload)

    assert response.status_code == 400
    assert response.json() == {"message": "idItem must be numeric"}


def test_create_with_oversized_product_id_is_rejected_and_not_stored(client, repository, order_payload):
    order_payload["items"][0]["idItem"] = str(10 ** 20)

    response = client.post("/order", json=order_payload)

    assert response.status_code == 400
    assert response.json() == {"message": "idItem must be numeric"}
    assert repository.get_by_id("O1") is None


def test_create_without_body_is_rejected(client):
    response = client.post("/order")

    assert response.status_code == 400
    assert response.json() == {"message": "Body is required"}


def test_malformed_json_is_rejected(client):
    response = client.post(
        "/order",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid JSON body"}


def test_create_duplicate_order_returns_generic_500(client, order_payload):
    client.post("/order", json=order_payload)

    response = client.post("/order", json=order_payload)

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}


def test_list_route_is_not_taken_as_order_id(client):
    response = client.get("/order/list")

    assert response.status_code == 200
    assert response.json() == []


def test_list_orders_newest_first(client, order_payload):
    client.post("/order", json=order_payload)
    later = dict(order_payload, numeroPedido="O2", dataCriacao="2024-02-01T12:30:00Z", items=[])
    client.post("/order", json=later)

    response = client.get("/order/list")

    assert response.status_code == 200
    body = response.json()
    assert [order["orderId"] for order in body] == ["O2", "O1"]
    assert body[0]["creationDate"] == "2024-02-01T12:30:00.000Z"
    assert body[1] == EXPECTED_O1


def test_update_order_replaces_items(client, order_payload):
    client.post("/order", json=order_payload)
    changed = {
        "numeroPedido": "ignored",
        "valorTotal": 30,
        "dataCriacao": "2024-01-05",
        "items": [
            {"idItem": 8, "quantidadeItem": 1, "valorItem": 10},
            {"idItem": "9", "quantidadeItem": 2, "valorItem": 10},
        ],
    }

    response = client.put("/order/O1", json=changed)

    assert response.status_code == 200
    assert response.json()["orderId"] == "O1"
    fetched = client.get("/order/O1").json()
    assert fetched["value"] == 30
    assert fetched["creationDate"] == "2024-01-05T00:00:00.000Z"
    assert fetched["items"] == [
        {"productId": 8, "quantity": 1, "price": 10},
        {"productId": 9, "quantity": 2, "price": 10},
    ]


def test_update_with_empty_items_clears_items(client, order_payload):
    client.post("/order", json=order_payload)

    response = client.put("/order/O1", json=dict(order_payload, items=[]))

    assert response.status_code == 200
    assert client.get("/order/O1").json()["items"] == []


def test_update_unknown_order_returns_404(client, order_payload):
    response = client.put("/order/nope", json=order_payload)

    assert response.status_code == 404
    assert response.json() == {"message": "Order not found"}


def test_update_with_invalid_payload_returns_400(client, order_payload):
    client.post("/order", json=order_payload)

    response = client.put("/order/O1", json=dict(order_payload, valorTotal="lots"))

    assert response.status_code == 400
    assert response.json() == {"message": "valorTotal must be a number"}


def test_delete_order(client, order_payload):
    client.post("/order", json=order_payload)

    response = client.delete("/order/O1")

    assert response.status_code == 204
    assert response.content == b""
    assert client.get("/order/O1").status_code == 404


def test_delete_unknown_order_returns_404(client):
    response = client.delete("/order/nope")

    assert response.status_code == 404
    assert response.json() == {"message": "Order not found"}


def test_unknown_route_returns_404(client):
    response = client.get("/orders")

    assert response.status_code == 404
    assert response.json() == {"message": "Route not found"}


class FailingRepository:
    def get_all(self):
        raise PersistenceError("connection refused by db-host-17")

    def get_by_id(self, order_id):
        raise RuntimeError("unexpected")


@pytest.fixture
def failing_client():
    app.dependency_overrides[get_repository] = FailingRepository
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def test_persistence_error_detail_is_not_leaked(failing_client):
    response = failing_client.get("/order/list")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}


def test_unexpected_error_returns_generic_500(failing_client):
    response = failing_client.get("/order/O1")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}


def test_uninitialized_database_returns_500(monkeypatch):
    monkeypatch.setattr(main, "get_database", Database)

    response = TestClient(app).get("/order/list")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}


def test_health_reports_database_status(monkeypatch):
    database = Database()
    database.initialize("sqlite://")
    monkeypatch.setattr(main, "get_database", lambda: database)
    client = TestClient(app)

    assert client.get("/health").json() == {"status": "ok", "database": "ok"}

    database.close()
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
