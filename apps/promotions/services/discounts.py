"""
Promo code validation and the "best discount wins" rule.

A booking gets either the early-bird discount or a promo code, never both.
The promo code only replaces early bird when it is strictly larger.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.utils import timezone

from apps.retreats.services import months_between
from ..models import PromoCode
from .exceptions import PromoCodeInvalidError

EARLY_BIRD_PERCENT = Decimal('10')
EARLY_BIRD_MIN_MONTHS = 3

SOURCE_EARLY_BIRD = 'early_bird'
SOURCE_PROMO_CODE = 'promo_code'


@dataclass
class DiscountResult:
    amount: Decimal
    source: Optional[str]
    early_bird_discount: Decimal
    promo_discount: Decimal
    promo_code: Optional[PromoCode]
    is_early_bird_eligible: bool

    @property
    def message(self) -> Optional[str]:
        if self.source == SOURCE_PROMO_CODE:
            return f"Promo code {self.promo_code.code} applied"
        if self.source == SOURCE_EARLY_BIRD:
            if self.promo_code is not None:
                return "Early bird discount is better than this promo code"
            return "Early bird discount applied"
        return None


def round_euros(value) -> Decimal:
    """Round to whole euros, halves away from zero."""
    return Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP)


def normalize_code(code: str) -> str:
    return (code or '').strip().upper()


def validate_promo_code(
    *,
    code: str,
    retreat_id=None,
    room_id=None,
    order_amount: Optional[Decimal] = None,
    today: Optional[date] = None,
) -> PromoCode:
    """
    Check that a promo code applies to an order.

    Checks run in a fixed order and the first failure is reported.

    Returns:
        The matching PromoCode

    Raises:
        PromoCodeInvalidError: With a customer-facing message
    """
    today = today or timezone.localdate()
    promo = PromoCode.objects.filter(code=normalize_code(code), is_active=True).first()
    if promo is None:
        raise PromoCodeInvalidError("Invalid promo code")

    if promo.valid_from and promo.valid_from > today:
        raise PromoCodeInvalidError("Promo code is not yet active")

    if promo.valid_until and promo.valid_until < today:
        raise PromoCodeInvalidError("Promo code has expired")

    if promo.max_uses is not None and promo.current_uses >= promo.max_uses:
        raise PromoCodeInvalidError("Promo code usage limit reached")

    if promo.min_order_amount is not None and order_amount is not None:
        if Decimal(order_amount) < promo.min_order_amount:
            raise PromoCodeInvalidError(f"Minimum order amount is €{promo.min_order_amount}")

    if promo.scope == PromoCode.Scope.RETREAT and str(promo.retreat_id) != str(retreat_id):
        raise PromoCodeInvalidError("Promo code is not valid for this retreat")

    if promo.scope == PromoCode.Scope.ROOM:
        if not room_id or str(promo.room_id) != str(room_id):
            raise PromoCodeInvalidError("Promo code is not valid for this room")

    return promo


def calculate_promo_discount(base_price, promo: PromoCode) -> Decimal:
    """Percentage codes round to whole euros; fixed codes never exceed the price."""
    base_price = Decimal(base_price)
    if promo.discount_type == PromoCode.DiscountType.PERCENTAGE:
        return round_euros(base_price * promo.discount_value / 100)
    return min(promo.discount_value, base_price)


def is_early_bird_eligible(
    *,
    booking_date: date,
    retreat_start: Optional[date],
    deadline: Optional[date] = None,
) -> bool:
    """
    A room-level deadline wins; without one the booking must be made at
    least three calendar months before the retreat starts.
    """
    if deadline is not None:
        return booking_date <= deadline
    if retreat_start is None:
        return False
    return months_between(booking_date, retreat_start) >= EARLY_BIRD_MIN_MONTHS


def calculate_early_bird_discount(*, base_price, eligible: bool) -> Decimal:
    """
    Early-bird discount for an eligible booking: always 10 % of the list
    price, rounded to whole euros. A room's displayed early-bird price
    does not change it.
    """
    if not eligible:
        return Decimal('0')
    return round_euros(Decimal(base_price) * EARLY_BIRD_PERCENT / 100)


def determine_best_discount(
    *,
    base_price,
    early_bird_discount: Decimal,
    is_early_bird_eligible: bool,
    promo: Optional[PromoCode] = None,
) -> DiscountResult:
    """Pick the larger of early bird and promo; ties go to early bird."""
    promo_discount = calculate_promo_discount(base_price, promo) if promo else Decimal('0')
    early_bird_discount = Decimal(early_bird_discount)

    if promo is not None and promo_discount > early_bird_discount:
        amount, source = promo_discount, SOURCE_PROMO_CODE
    elif early_bird_discount > 0:
        amount, source = early_bird_discount, SOURCE_EARLY_BIRD
    else:
        amount, source = Decimal('0'), None

    return DiscountResult(
        amount=amount,
        source=source,
        early_bird_discount=early_bird_discount,
        promo_discount=promo_discount,
        promo_code=promo,
        is_early_bird_eligible=is_early_bird_eligible,
    )


def resolve_booking_discount(
    *,
    base_price,
    retreat_start: Optional[date],
    early_bird_enabled: bool = False,
    early_bird_deadline: Optional[date] = None,
    promo: Optional[PromoCode] = None,
    booking_date: Optional[date] = None,
) -> DiscountResult:
    """Compute both candidate discounts and return the winner."""
    booking_date = booking_date or timezone.localdate()
    eligible = early_bird_enabled and is_early_bird_eligible(
        booking_date=booking_date,
        retreat_start=retreat_start,
        deadline=early_bird_deadline,
    )
    early_bird = calculate_early_bird_discount(
        base_price=base_price,
        eligible=eligible,
    )
    return determine_best_discount(
        base_price=base_price,
        early_bird_discount=early_bird,
        is_early_bird_eligible=eligible,
        promo=promo,
    )


def resolve_room_discount(*, room, promo: Optional[PromoCode] = None, booking_date: Optional[date] = None) -> DiscountResult:
    """Discount for booking ``room`` at its list price."""
    return resolve_booking_discount(
        base_price=room.price,
        retreat_start=room.retreat.start_date,
        early_bird_enabled=room.early_bird_enabled,
        early_bird_deadline=room.early_bird_deadline,
        promo=promo,
        booking_date=booking_date,
    )
