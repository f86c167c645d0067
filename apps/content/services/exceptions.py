"""Domain-specific exceptions for site content services."""


class ContentServiceError(Exception):
    """Base exception for content services."""
    pass


class UnknownSettingSectionError(ContentServiceError):
    """Raised when a settings section does not exist."""
    pass


class InvalidFeedbackTokenError(ContentServiceError):
    """Raised when a feedback link signature does not match the booking."""
    pass


class FeedbackNotAllowedError(ContentServiceError):
    """Raised when feedback cannot be submitted for a booking."""
    pass


class UploadRejectedError(ContentServiceError):
    """Raised when an uploaded file is not an accepted image."""
    pass
