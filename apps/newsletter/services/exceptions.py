"""Domain-specific exceptions for newsletter services."""


class NewsletterServiceError(Exception):
    """Base exception for newsletter services."""
    pass


class InvalidTokenError(NewsletterServiceError):
    """Raised when a confirm or unsubscribe token matches nothing."""
    pass


class ExpiredTokenError(NewsletterServiceError):
    """Raised when a confirm token is past its expiry."""
    pass


class CampaignStateError(NewsletterServiceError):
    """Raised when a campaign cannot be sent in its current status."""
    pass


class NoRecipientsError(NewsletterServiceError):
    """Raised when no subscriber matches a campaign's targeting."""
    pass
