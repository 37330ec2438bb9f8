from __future__ import annotations

from typing import Any, Dict, Optional


class StockServiceError(RuntimeError):
    """Base error raised by the stock services; carries an HTTP-friendly status."""

    status_code = 500
    retryable = False

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.details)
        payload['type'] = self.__class__.__name__
        if self.retryable:
            payload['retryable'] = True
        return payload


class ValidationError(StockServiceError):
    """Missing or invalid input. No state change."""

    status_code = 400

    def __init__(self, message: str, *, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if field:
            details.setdefault('field', field)
        super().__init__(message, details=details)
        self.field = field


class NotFoundError(StockServiceError):
    status_code = 404


class InsufficientStockError(StockServiceError):
    """FIFO deduction cannot be covered by active stock; the whole request is rejected."""

    status_code = 409

    def __init__(self, message: str, *, requested: int, available: int):
        self.requested = requested
        self.available = available
        self.shortfall = requested - available
        super().__init__(
            message,
            details={'requested': requested, 'available': available, 'shortfall': self.shortfall},
        )


class PersistenceConflict(StockServiceError):
    """Concurrent modification detected at commit; safe to retry on a fresh snapshot."""

    status_code = 409
    retryable = True


__all__ = [
    'StockServiceError',
    'ValidationError',
    'NotFoundError',
    'InsufficientStockError',
    'PersistenceConflict',
]
