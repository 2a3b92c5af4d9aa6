"""
Domain Errors — Each maps to an HTTP status and a JSON {error, details} body.
"""
from typing import Any, Optional


class MembershipAPIError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, details: Optional[Any] = None, error: Optional[str] = None):
        if error is not None:
            self.error = error
        self.details = details
        super().__init__(f"{self.error}: {details}" if details else self.error)

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidAmountError(MembershipAPIError):
    status_code = 400
    error = "Invalid amount"


class MemberNotFound(MembershipAPIError):
    status_code = 404
    error = "Member not found"


class PaymentRequestNotFound(MembershipAPIError):
    status_code = 404
    error = "Payment request not found"


class DuplicateMemberError(MembershipAPIError):
    status_code = 409
    error = "Member already exists"


class InvalidPaymentTransition(MembershipAPIError):
    status_code = 500
    error = "Invalid payment status transition"


class GatewayError(MembershipAPIError):
    """Anything that went wrong talking to the payment provider."""

    status_code = 500
    error = "Payment gateway error"


class GatewayTokenError(GatewayError):
    error = "Token error"


class GatewayRequestError(GatewayError):
    error = "STK push request failed"


class PaymentInitiationError(GatewayError):
    error = "Failed to initiate payment"


class PaymentAmountMismatch(MembershipAPIError):
    status_code = 500
    error = "Paid amount does not match payment request"


class RateLimitExceeded(MembershipAPIError):
    status_code = 429
    error = "Rate limit exceeded"
