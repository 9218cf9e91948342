"""
UMC Media Hub - Custom Exceptions
==================================
Business-level exceptions that can be caught and converted to HTTP responses.
"""

from fastapi import HTTPException, status


class RentalError(Exception):
    """Base exception for all business logic errors."""
    code = "RENTAL_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Terjadi kesalahan sistem."):
        self.message = message
        super().__init__(self.message)


class ValidationError(RentalError):
    """Raised for invalid input rejected before anything is written."""
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(RentalError):
    """Raised when the actor lacks the role or ownership required."""
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(RentalError):
    """Raised when a requested resource doesn't exist."""
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(RentalError):
    """Raised for wrong-state transitions and duplicates."""
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class PaymentAlreadyExistsError(ConflictError):
    """A pending or paid payment already exists: hide the pay action."""
    code = "PAYMENT_EXISTS"

    def __init__(self, payment_id: int = None):
        self.payment_id = payment_id
        super().__init__("Pembayaran untuk booking ini sudah dibuat.")


class PaymentError(RentalError):
    """Raised when the payment gateway refuses a request."""
    code = "PAYMENT_ERROR"
    status_code = status.HTTP_502_BAD_GATEWAY


class TransportError(RentalError):
    """Network or 5xx failure talking to an external collaborator. Never retried here."""
    code = "TRANSPORT_ERROR"
    status_code = status.HTTP_502_BAD_GATEWAY


def raise_http(error: RentalError, status_code: int = None):
    """Convert a business exception to an HTTP exception."""
    detail = {"message": error.message, "code": error.code}
    if isinstance(error, PaymentAlreadyExistsError) and error.payment_id:
        detail["paymentId"] = error.payment_id
    raise HTTPException(status_code=status_code or error.status_code, detail=detail)
