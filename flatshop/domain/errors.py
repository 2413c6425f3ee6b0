# flatshop/domain/errors.py
from typing import Iterable


class FlatShopError(Exception):
    """Base class for every error raised by the record store and the ledgers."""


class ValidationError(FlatShopError, ValueError):
    """Missing or malformed input, unknown update field or invalid status."""

    def __init__(self, message: str, errors: Iterable[str] | None = None):
        self.errors = list(errors or [])
        if self.errors:
            message = f"{message}: {', '.join(self.errors)}"
        super().__init__(message)


class NotFound(FlatShopError, LookupError):
    pass


class PermissionDenied(FlatShopError, PermissionError):
    pass


class InventoryExhausted(FlatShopError, ValueError):
    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Product {product_id} does not have {requested} item(s) in inventory. "
            f"The stock contains {available}"
        )


class StoreIOError(FlatShopError, OSError):
    """A JSON document could not be read, parsed, locked or written."""


class DocumentParseError(StoreIOError):
    def __init__(self, path, reason: str):
        self.path = str(path)
        super().__init__(f"Error parsing JSON file: {path} - {reason}")


class LockTimeout(StoreIOError):
    pass


class LockBusy(FlatShopError):
    """Lock file held by another owner; retried until LockTimeout."""
