"""Domain-specific exceptions for notification services."""


class NotificationServiceError(Exception):
    """Base exception for notification services."""
    pass


class EmailDeliveryError(NotificationServiceError):
    """Raised when the email provider rejects or fails a send."""
    pass


class TemplateNotFoundError(NotificationServiceError):
    """Raised when neither a stored nor a bundled template exists for a slug."""
    pass


class WebhookSignatureError(NotificationServiceError):
    """Raised when a provider webhook fails signature verification."""
    pass
