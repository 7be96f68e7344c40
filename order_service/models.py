"""
models.py — Data Models for Orders

This module defines the order payload accepted over HTTP and the canonical
order representation shared by the repository and the response shaping.
It uses Pydantic models to ensure type safety of everything that reaches the
database.

Models:
    - OrderItemRequest / OrderRequest: Inbound payload (Portuguese field names).
      Field validators coerce lenient JSON input and fail with the message
      returned to the client.
    - OrderItem / Order: Canonical order with its owned items.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

MISSING_FIELDS = "Invalid payload: missing required fields"
INVALID_ITEM = "Invalid item payload"
INVALID_TOTAL = "valorTotal must be a number"
INVALID_PRODUCT_ID = "idItem must be numeric"
INVALID_QUANTITY_OR_PRICE = "quantidadeItem and valorItem must be numeric"
INVALID_DATE = "dataCriacao must be a valid date"

# productid is a signed 32-bit INTEGER column
_INT32_MIN, _INT32_MAX = -2 ** 31, 2 ** 31 - 1
_INTEGER_PATTERN = re.compile(r"[+-]?\d+")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_number(value: Any) -> Optional[float]:
    """Returns value as a finite float, or None if it is not numeric."""
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _to_int32(value: Any) -> Optional[int]:
    """Returns value as an int within the 32-bit range, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and _INTEGER_PATTERN.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        return None
    return number if _INT32_MIN <= number <= _INT32_MAX else None


def _to_datetime(value: Any) -> Optional[datetime]:
    """Parses an ISO-8601 date or date-time; naive values are taken as UTC."""
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class OrderItemRequest(BaseModel):
    """
    Represents one item of an order payload.

    Attributes:
        idItem (int): Product identifier; numeric strings are accepted.
        quantidadeItem (float): Quantity; numeric strings are accepted.
        valorItem (float): Unit price; numeric strings are accepted.
    """
    idItem: int = Field(None, validate_default=True)
    quantidadeItem: float = Field(None, validate_default=True)
    valorItem: float = Field(None, validate_default=True)

    @model_validator(mode="before")
    @classmethod
    def require_object(cls, data: Any):
        if not isinstance(data, dict):
            raise ValueError(INVALID_ITEM)
        return data

    @field_validator("idItem", mode="before")
    @classmethod
    def coerce_product_id(cls, value: Any) -> int:
        if _is_blank(value):
            raise ValueError(INVALID_ITEM)
        product_id = _to_int32(value)
        if product_id is None:
            raise ValueError(INVALID_PRODUCT_ID)
        return product_id

    @field_validator("quantidadeItem", "valorItem", mode="before")
    @classmethod
    def coerce_number(cls, value: Any) -> float:
        if value is None:
            raise ValueError(INVALID_ITEM)
        number = _to_number(value)
        if number is None:
            raise ValueError(INVALID_QUANTITY_OR_PRICE)
        return number


class OrderRequest(BaseModel):
    """
    Represents the order payload of a create or update request.

    Attributes:
        numeroPedido (str): Order identifier (ignored on update, the path wins).
        valorTotal (float): Total value of the order.
        dataCriacao (datetime): ISO-8601 date or date-time, normalized to UTC.
        items (List[OrderItemRequest]): Items of the order, may be empty.
    """
    numeroPedido: str = Field(None, validate_default=True)
    valorTotal: float = Field(None, validate_default=True)
    dataCriacao: datetime = Field(None, validate_default=True)
    items: List[OrderItemRequest] = Field(None, validate_default=True)

    @field_validator("numeroPedido", mode="before")
    @classmethod
    def require_order_id(cls, value: Any) -> str:
        if _is_blank(value):
            raise ValueError(MISSING_FIELDS)
        return str(value)

    @field_validator("valorTotal", mode="before")
    @classmethod
    def coerce_total(cls, value: Any) -> float:
        if value is None:
            raise ValueError(MISSING_FIELDS)
        number = _to_number(value)
        if number is None:
            raise ValueError(INVALID_TOTAL)
        return number

    @field_validator("dataCriacao", mode="before")
    @classmethod
    def parse_creation_date(cls, value: Any) -> datetime:
        if _is_blank(value):
            raise ValueError(MISSING_FIELDS)
        parsed = _to_datetime(value)
        if parsed is None:
            raise ValueError(INVALID_DATE)
        return parsed

    @field_validator("items", mode="before")
    @classmethod
    def require_item_list(cls, value: Any) -> list:
        if not isinstance(value, list):
            raise ValueError(MISSING_FIELDS)
        return value


class OrderItem(BaseModel):
    """
    Represents a single product line of an order.

    Attributes:
        productId (int): Opaque product identifier.
        quantity (float): Ordered quantity.
        price (float): Unit price.
    """
    productId: int
    quantity: float
    price: float


class Order(BaseModel):
    """
    Represents an order with its items.

    Attributes:
        orderId (str): Unique identifier for the order (primary key).
        value (float): Total value of the order.
        creationDate (datetime): Creation timestamp, timezone-aware UTC.
        items (List[OrderItem]): Line items owned by the order.
    """
    orderId: str
    value: float
    creationDate: datetime
    items: List[OrderItem] = Field(default_factory=list)
