"""Domain-specific exceptions for promotion services."""


class PromotionServiceError(Exception):
    """Base exception for promotion services."""
    pass


class PromoCodeInvalidError(PromotionServiceError):
    """Raised when a promo code cannot be applied to an order."""
    pass


class PromoCodeLimitReachedError(PromotionServiceError):
    """Raised when a promo code has no uses left."""
    pass
