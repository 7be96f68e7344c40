"""
main.py — FastAPI Entry Point for the Orders API

This module provides the REST API for creating, reading, updating and deleting
orders with their line items.

Responsibilities:
    • Validate incoming order payloads (mapping.py)
    • Delegate storage to the OrderRepository (one transaction per call)
    • Shape responses and map errors to HTTP status codes
    • Open the database connection pool on startup and close it on shutdown
    • Provide system health information

Endpoints:
    POST   /order            — Create an order (201)
    GET    /order/list       — List all orders (200)
    GET    /order/{orderId}  — Fetch one order (200 / 404)
    PUT    /order/{orderId}  — Replace an order and its items (200 / 404)
    DELETE /order/{orderId}  — Delete an order and its items (204 / 404)
    GET    /health           — Service and database health
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .database import get_database
from .errors import OrderNotFoundError, OrderServiceError
from .logging_config import get_logger, setup_logging
from .mapping import map_order_to_response, map_request_to_order
from .repository import OrderRepository

# Initialization
# Configure logging before the app is created
setup_logging()
log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Opens the database connection pool on startup and disposes it on shutdown.
    """
    log.info("Orders API starting...")
    database = get_database()
    database.initialize()
    log.info(f"Orders API ready on http://{config.HOST}:{config.PORT}")
    try:
        yield
    finally:
        database.close()
        log.info("Orders API stopped.")


app = FastAPI(title="Orders API", lifespan=lifespan)


def get_repository() -> OrderRepository:
    """Dependency providing a repository bound to the process-wide engine."""
    return OrderRepository(get_database().engine)


# Exception Handlers: errors are turned into responses only here
@app.exception_handler(OrderServiceError)
async def order_service_error_handler(request: Request, exc: OrderServiceError):
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    elif isinstance(exc, OrderNotFoundError):
        log.info(f"[Order: {exc.order_id}] {request.method} {request.url.path}: order not found.")
    else:
        log.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.public_message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    log.warning(f"{request.method} {request.url.path} rejected: malformed request body.")
    return JSONResponse(status_code=400, content={"message": "Invalid JSON body"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 else exc.detail
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log.critical(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# API Endpoints
@app.post("/order", status_code=201)
def create_order(
        payload: Any = Body(None),
        repository: OrderRepository = Depends(get_repository)
):
    """
    Creates a new order with its items.

    Args:
        payload (Any): Order payload (numeroPedido, valorTotal, dataCriacao, items).
        repository (OrderRepository): Injected order repository.

    Returns:
        dict: The created order in response shape.

    Raises:
        OrderValidationError: Invalid payload (400).
        PersistenceError: Database failure, nothing stored (500).
    """
    order = map_request_to_order(payload)
    log_prefix = f"[Order: {order.orderId}]"
    log.info(f"{log_prefix} Create request received with {len(order.items)} item(s).")

    saved = repository.create(order)
    return map_order_to_response(saved)


# Registered before /order/{orderId} so that "list" is never taken as an id
@app.get("/order/list")
def list_orders(repository: OrderRepository = Depends(get_repository)):
    """
    Lists all orders, newest first.

    Returns:
        list: Orders in response shape.
    """
    orders = repository.get_all()
    log.info(f"Listing {len(orders)} order(s).")
    return [map_order_to_response(order) for order in orders]


@app.get("/order/{orderId}")
def get_order(orderId: str, repository: OrderRepository = Depends(get_repository)):
    """
    Fetches a single order.

    Raises:
        OrderNotFoundError: Unknown order identifier (404).
    """
    order = repository.get_by_id(orderId)
    if order is None:
        raise OrderNotFoundError(orderId)
    return map_order_to_response(order)


@app.put("/order/{orderId}")
def update_order(
        orderId: str,
        payload: Any = Body(None),
        repository: OrderRepository = Depends(get_repository)
):
    """
    Replaces an order's value, creation date and complete item list.

    The identifier in the path wins over numeroPedido in the payload.

    Returns:
        dict: The updated order in response shape.

    Raises:
        OrderValidationError: Invalid payload (400).
        OrderNotFoundError: Unknown order identifier (404).
        PersistenceError: Database failure, previous state kept (500).
    """
    order = map_request_to_order(payload)
    log.info(f"[Order: {orderId}] Update request received with {len(order.items)} item(s).")

    updated = repository.update(orderId, order)
    if updated is None:
        raise OrderNotFoundError(orderId)
    return map_order_to_response(updated)


@app.delete("/order/{orderId}", status_code=204)
def delete_order(orderId: str, repository: OrderRepository = Depends(get_repository)):
    """
    Deletes an order and all of its items.

    Raises:
        OrderNotFoundError: Unknown order identifier (404).
    """
    if not repository.delete(orderId):
        raise OrderNotFoundError(orderId)
    return Response(status_code=204)


# Health Check Endpoint
@app.get("/health")
def health_check():
    """
    Health check endpoint including a database round trip.

    Can be used by monitoring systems or container orchestrators
    (e.g., Docker, Kubernetes) to verify that the service is running.

    Returns:
        JSONResponse: 200 if the database answers, 503 otherwise.
    """
    if get_database().health_check():
        return {"status": "ok", "database": "ok"}
    return JSONResponse(status_code=503, content={"status": "degraded", "database": "unavailable"})


def run():
    """Starts the HTTP server."""
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
