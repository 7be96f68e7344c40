"""
mapping.py — Request Validation and Response Shaping

This module translates between the external JSON contract of the Orders API
and the internal Order model.

Inbound payload (field names are part of the public contract):

    {
        "numeroPedido": "O1",
        "valorTotal": 100.5,
        "dataCriacao": "2024-01-01",
        "items": [{"idItem": "7", "quantidadeItem": 2, "valorItem": 50.25}]
    }

Outbound body:

    {
        "orderId": "O1",
        "value": 100.5,
        "creationDate": "2024-01-01T00:00:00.000Z",
        "items": [{"productId": 7, "quantity": 2, "price": 50.25}]
    }

Both functions are pure; they never touch the database.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from . import models
from .errors import OrderValidationError
from .models import Order, OrderItem, OrderRequest

# When several fields are wrong, the first message in this list is reported
_MESSAGE_PRIORITY = [
    models.MISSING_FIELDS,
    models.INVALID_ITEM,
    models.INVALID_TOTAL,
    models.INVALID_PRODUCT_ID,
    models.INVALID_QUANTITY_OR_PRICE,
    models.INVALID_DATE,
]


def _first_message(exc: ValidationError) -> str:
    messages = set()
    for error in exc.errors():
        cause = error.get("ctx", {}).get("error")
        messages.add(str(cause) if cause is not None else error["msg"])

    for message in _MESSAGE_PRIORITY:
        if message in messages:
            return message
    return models.MISSING_FIELDS


def map_request_to_order(raw: Any) -> Order:
    """
    Validates an untrusted order payload and converts it into an Order.

    Validation is done by OrderRequest; of all problems found, the most
    fundamental one (missing fields before bad items before bad numbers)
    becomes the error message.

    Args:
        raw (Any): Decoded JSON body of a create or update request.

    Returns:
        Order: Canonical order with numeric fields coerced to numbers and
        the creation date as a timezone-aware UTC datetime.

    Raises:
        OrderValidationError: If a required field is missing or a field
            cannot be coerced to its type. The message names the problem.
    """
    if not isinstance(raw, dict):
        raise OrderValidationError("Body is required")

    try:
        request = OrderRequest.model_validate(raw)
    except ValidationError as e:
        raise OrderValidationError(_first_message(e)) from e

    return Order(
        orderId=request.numeroPedido,
        value=request.valorTotal,
        creationDate=request.dataCriacao,
        items=[
            OrderItem(productId=item.idItem, quantity=item.quantidadeItem, price=item.valorItem)
            for item in request.items
        ]
    )


def format_timestamp(value: datetime) -> str:
    """
    Formats a datetime as ISO-8601 UTC with millisecond precision.

    Naive datetimes (as returned by SQLite) are taken as UTC.

    Example:
        datetime(2024, 1, 1, tzinfo=timezone.utc) -> '2024-01-01T00:00:00.000Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"


def _json_number(value: Any):
    # integral values are emitted as JSON integers
    number = float(value)
    return int(number) if number.is_integer() else number


def map_order_to_response(order: Order) -> dict:
    """
    Shapes an Order into the public response body.

    Args:
        order (Order): Order returned by the repository.

    Returns:
        dict: JSON-serializable body with camelCase keys, numeric fields as
        numbers and creationDate as an ISO-8601 string.
    """
    return {
        "orderId": order.orderId,
        "value": _json_number(order.value),
        "creationDate": format_timestamp(order.creationDate),
        "items": [
            {
                "productId": item.productId,
                "quantity": _json_number(item.quantity),
                "price": _json_number(item.price),
            }
            for item in order.items or []
        ],
    }
