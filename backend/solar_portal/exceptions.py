"""
Payment Errors — One exception per failure category, each carrying its HTTP status.
Payment routes convert these into the JSON error envelope.
"""
from typing import Optional


class PaymentError(Exception):
    status_code = 500
    error_code = "payment_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthenticationError(PaymentError):
    status_code = 401
    error_code = "unauthenticated"


class PaymentValidationError(PaymentError):
    status_code = 400
    error_code = "validation_error"


class PaymentNotFoundError(PaymentError):
    status_code = 404
    error_code = "not_found"


class PaymentStateError(PaymentError):
    status_code = 409
    error_code = "invalid_state"


class RateLimitError(PaymentError):
    status_code = 429
    error_code = "rate_limited"


class GatewayError(PaymentError):
    """Upstream gateway refused the call or could not be reached."""

    status_code = 502
    error_code = "gateway_error"

    def __init__(self, message: str, *, gateway_code: Optional[int] = None):
        super().__init__(message)
        self.gateway_code = gateway_code


class PersistenceError(PaymentError):
    status_code = 500
    error_code = "persistence_error"
