"""
Typed failures raised by the reservation services.

Every error carries a stable ``code`` for clients and the HTTP status the API
layer maps it to. Services raise these; only the exception handler in
``ticket_reserve.api.errors`` knows about HTTP.
"""

from enum import Enum


class ErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    RESERVATION_CLOSED = "RESERVATION_CLOSED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    TRANSACTION_CONFLICT = "TRANSACTION_CONFLICT"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"


class ReservationError(Exception):
    """Base error with a user-safe message."""

    code: ErrorCode = ErrorCode.VALIDATION_FAILED
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(ReservationError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class ValidationError(ReservationError):
    code = ErrorCode.VALIDATION_FAILED
    status_code = 422


class ReservationClosedError(ValidationError):
    """The event is not accepting reservations today."""

    code = ErrorCode.RESERVATION_CLOSED


class PermissionDeniedError(ReservationError):
    code = ErrorCode.PERMISSION_DENIED
    status_code = 403


class CapacityExceededError(ReservationError):
    """Committing the reservation would overbook the event."""

    code = ErrorCode.CAPACITY_EXCEEDED
    status_code = 409

    def __init__(self, requested: int, remaining: int) -> None:
        super().__init__(
            f"Sold out or not enough seats left. Requested: {requested}, Remaining: {max(remaining, 0)}"
        )
        self.requested = requested
        self.remaining = max(remaining, 0)


class TransactionConflictError(ReservationError):
    """Concurrent writers kept winning until the retry budget ran out."""

    code = ErrorCode.TRANSACTION_CONFLICT
    status_code = 409

    def __init__(self, operation: str, attempts: int) -> None:
        super().__init__("The request could not be completed due to high demand. Please try again.")
        self.operation = operation
        self.attempts = attempts


class AuthenticationError(ReservationError):
    code = ErrorCode.NOT_AUTHENTICATED
    status_code = 401
