"""Domain-specific exceptions for translation services."""


class TranslationServiceError(Exception):
    """Base exception for translation services."""
    pass


class TranslatorNotConfiguredError(TranslationServiceError):
    """Raised when the provider API key is missing."""
    pass


class TranslationFailedError(TranslationServiceError):
    """Raised when the provider errors or returns something unusable."""
    pass
