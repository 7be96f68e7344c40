"""
errors.py — Error Taxonomy of the Orders API

Every failure the service reports is an OrderServiceError tagged with an
ErrorKind. The kind carries the HTTP status code; the mapping to a response
happens once, in the exception handlers registered in main.py.

Absence of an order is not an error inside the repository (it returns None or
False). Route functions turn that sentinel into OrderNotFoundError.
"""

from enum import Enum


class ErrorKind(Enum):
    """Category of a service error and its HTTP status code."""
    VALIDATION = 400
    NOT_FOUND = 404
    PERSISTENCE = 500

    @property
    def status_code(self) -> int:
        return self.value


class OrderServiceError(Exception):
    """
    Base class for errors raised by the Orders API.

    Attributes:
        message (str): Detailed error description (may contain internal detail).
        kind (ErrorKind): Error category, resolves the HTTP status code.
    """
    kind = ErrorKind.PERSISTENCE

    def __init__(self, message: str, kind: ErrorKind = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @property
    def public_message(self) -> str:
        """Message safe to return to the client."""
        if self.status_code >= 500:
            return "Internal server error"
        return self.message


class OrderValidationError(OrderServiceError):
    """Malformed or incomplete order payload."""
    kind = ErrorKind.VALIDATION


class OrderNotFoundError(OrderServiceError):
    """Requested order identifier does not exist."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, order_id: str):
        super().__init__("Order not found")
        self.order_id = order_id


class PersistenceError(OrderServiceError):
    """A database operation failed; its transaction has been rolled back."""
    kind = ErrorKind.PERSISTENCE
