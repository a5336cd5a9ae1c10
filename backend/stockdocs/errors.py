# Overview: Domain error kinds shared by services and mapped to HTTP statuses by routes.

from __future__ import annotations


class StockDocsError(Exception):
    """Base class for business errors surfaced to callers."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(StockDocsError, ValueError):
    """400-level input problem. Nothing was written."""

    status_code = 400


class NotFoundError(StockDocsError):
    """Referenced document, line or control does not exist."""

    status_code = 404


class InvalidStateError(StockDocsError):
    """Operation not allowed in the document's current status."""

    status_code = 409


class ConflictError(StockDocsError):
    """409-level unique-constraint violation (e.g., second cash control for a date)."""

    status_code = 409


class PreconditionError(StockDocsError):
    """Business rule not satisfied (e.g., journal requested before cash control closed)."""

    status_code = 422


class PersistenceError(StockDocsError):
    """Store write failed; the transaction was rolled back."""

    status_code = 500


class ExternalSystemError(StockDocsError):
    """Inventory API unreachable or rejected a call."""

    status_code = 502
