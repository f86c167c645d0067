"""Services for promotions business logic."""

from .exceptions import (
    PromotionServiceError,
    PromoCodeInvalidError,
    PromoCodeLimitReachedError,
)
from .discounts import (
    DiscountResult,
    SOURCE_EARLY_BIRD,
    SOURCE_PROMO_CODE,
    normalize_code,
    round_euros,
    validate_promo_code,
    calculate_promo_discount,
    calculate_early_bird_discount,
    is_early_bird_eligible,
    determine_best_discount,
    resolve_booking_discount,
    resolve_room_discount,
)
from .redemption import redeem_promo_code, release_promo_code, get_promo_code_stats

__all__ = [
    # Exceptions
    'PromotionServiceError',
    'PromoCodeInvalidError',
    'PromoCodeLimitReachedError',
    # Discounts
    'DiscountResult',
    'SOURCE_EARLY_BIRD',
    'SOURCE_PROMO_CODE',
    'normalize_code',
    'round_euros',
    'validate_promo_code',
    'calculate_promo_discount',
    'calculate_early_bird_discount',
    'is_early_bird_eligible',
    'determine_best_discount',
    'resolve_booking_discount',
    'resolve_room_discount',
    # Redemption
    'redeem_promo_code',
    'release_promo_code',
    'get_promo_code_stats',
]
