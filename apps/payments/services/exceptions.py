"""Domain-specific exceptions for payment services."""


class PaymentServiceError(Exception):
    """Base exception for payment services."""
    pass


class CheckoutError(PaymentServiceError):
    """Raised when a checkout request cannot be turned into a booking."""
    pass


class CheckoutNotFoundError(CheckoutError):
    """Raised when the retreat or room of a checkout does not exist."""
    pass


class PaymentGatewayError(PaymentServiceError):
    """Raised when Stripe rejects or fails a request."""
    pass


class ScheduleNotPayableError(PaymentServiceError):
    """
    Raised when an installment cannot be paid or charged.

    ``code`` is a short machine-readable reason used in redirect URLs.
    """

    def __init__(self, message, code='invalid_status'):
        super().__init__(message)
        self.code = code


class RefundError(PaymentServiceError):
    """Raised when a refund request is invalid."""
    pass


class InvalidVatIdError(PaymentServiceError):
    """Raised when a VAT ID is malformed or rejected by VIES."""
    pass


class WebhookVerificationError(PaymentServiceError):
    """Raised when a Stripe webhook payload or signature is invalid."""
    pass
