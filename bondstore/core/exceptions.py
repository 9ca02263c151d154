"""Typed errors raised by the ledger, rollover, report and store operations.

Every error derives from ``BondStoreError`` (itself a ``ValueError`` so callers
that only know about bad input still catch it). ``code`` and ``status_code``
drive the JSON error envelope rendered by ``core.errors``.
"""

from __future__ import annotations

from typing import Any


class BondStoreError(ValueError):
    code = "bondstore_error"
    status_code = 400

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or None


class InvalidMonthFormat(BondStoreError):
    code = "invalid_month_format"
    status_code = 422

    def __init__(self, token: object) -> None:
        super().__init__(f"Invalid month '{token}'. Expected YYYY-MM.", month=str(token))


class DateRangeError(BondStoreError):
    code = "date_range_error"
    status_code = 422

    def __init__(self, token: str) -> None:
        super().__init__(f"Could not calculate the date range for month '{token}'.", month=token)


class InsufficientStock(BondStoreError):
    code = "insufficient_stock"
    status_code = 409

    def __init__(self, item_name: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for '{item_name}': requested {requested}, available {available}.",
            item=item_name,
            requested=requested,
            available=available,
        )
        self.requested = requested
        self.available = available


class DuplicateIdentifier(BondStoreError):
    code = "duplicate_identifier"
    status_code = 409

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"{field} '{value}' already exists.", field=field, value=str(value))
        self.field = field
        self.value = value


class NotFound(BondStoreError):
    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, identifier: object) -> None:
        super().__init__(f"{entity} '{identifier}' not found.", entity=entity, identifier=str(identifier))


class PersistenceError(BondStoreError):
    code = "persistence_error"
    status_code = 500


class StoreError(BondStoreError):
    code = "store_error"
    status_code = 400


__all__ = [
    "BondStoreError",
    "DateRangeError",
    "DuplicateIdentifier",
    "InsufficientStock",
    "InvalidMonthFormat",
    "NotFound",
    "PersistenceError",
    "StoreError",
]
