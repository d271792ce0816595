"""
Error taxonomy shared by the store, the reference validator, the stock ledger
and the HTTP layer.

Every error carries a machine-readable ``code``, a human-readable ``message``,
the HTTP status the API answers with, and a ``data`` dict with context
(offending ids, quantities). ``as_dict()`` is what the JSON error handler
returns to the client.
"""

from typing import Any


class AppError(Exception):
    """Base class for every error the API reports to a caller."""

    code = "INTERNAL"
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None, **data: Any) -> None:
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    def as_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, "data": dict(self.data)}


class NotFound(AppError):
    """The primary resource of the request does not exist."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class InvalidReference(AppError):
    """A foreign identifier in the payload does not resolve."""

    code = "INVALID_REFERENCE"
    status_code = 400
    default_message = "Referenced entity does not exist"


class UnknownStockItem(InvalidReference):
    code = "UNKNOWN_STOCK_ITEM"
    default_message = "Stock item does not exist"


class InsufficientStock(AppError):
    """A reservation would take a stock item below zero."""

    code = "INSUFFICIENT_STOCK"
    status_code = 400
    default_message = "Insufficient stock"

    @property
    def stock_id(self) -> str | None:
        return self.data.get("stock_id")

    @property
    def shortfall(self) -> int:
        return self.data.get("shortfall", 0)


class ValidationError(AppError):
    """Malformed request payload."""

    code = "INVALID_PAYLOAD"
    status_code = 400
    default_message = "Invalid request payload"


class StorageError(AppError):
    code = "INTERNAL"
    status_code = 500
    default_message = "Storage failure"
