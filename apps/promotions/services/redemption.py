"""Recording promo code usage against bookings."""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Q, Sum, Count

from ..models import PromoCode, PromoCodeRedemption
from .exceptions import PromoCodeLimitReachedError

logger = logging.getLogger(__name__)


@transaction.atomic
def redeem_promo_code(
    *,
    promo: PromoCode,
    booking,
    original_amount: Decimal,
    discount_applied: Decimal,
    final_amount: Decimal,
) -> PromoCodeRedemption:
    """
    Take one use of a promo code for a booking.

    The usage counter is bumped with a conditional UPDATE so concurrent
    checkouts cannot push a code past ``max_uses``.

    Raises:
        PromoCodeLimitReachedError: If the code is inactive or used up
    """
    updated = (
        PromoCode.objects
        .filter(id=promo.id, is_active=True)
        .filter(Q(max_uses__isnull=True) | Q(current_uses__lt=F('max_uses')))
        .update(current_uses=F('current_uses') + 1)
    )
    if updated != 1:
        logger.warning("Promo code %s could not be redeemed for booking %s", promo.code, booking.id)
        raise PromoCodeLimitReachedError("Promo code usage limit reached")

    redemption = PromoCodeRedemption.objects.create(
        promo_code=promo,
        booking=booking,
        original_amount=original_amount,
        discount_applied=discount_applied,
        final_amount=final_amount,
    )
    logger.info("Promo code %s redeemed by booking %s", promo.code, booking.booking_number)
    return redemption


@transaction.atomic
def release_promo_code(*, booking) -> int:
    """
    Give back the promo code uses of a cancelled booking.

    Returns:
        Number of redemptions released
    """
    redemptions = list(PromoCodeRedemption.objects.select_for_update().filter(booking=booking))
    for redemption in redemptions:
        PromoCode.objects.filter(id=redemption.promo_code_id, current_uses__gt=0).update(
            current_uses=F('current_uses') - 1
        )
        redemption.delete()
    if redemptions:
        logger.info("Released %s promo redemption(s) of booking %s", len(redemptions), booking.booking_number)
    return len(redemptions)


def get_promo_code_stats(*, promo: PromoCode) -> dict:
    """Redemption totals for the admin promo page."""
    totals = PromoCodeRedemption.objects.filter(promo_code=promo).aggregate(
        count=Count('id'),
        discount=Sum('discount_applied'),
        original=Sum('original_amount'),
    )
    count = totals['count'] or 0
    discount = totals['discount'] or Decimal('0')
    original = totals['original'] or Decimal('0')
    average = (discount / count).quantize(Decimal('0.01')) if count else Decimal('0')
    return {
        'total_redemptions': count,
        'total_discount_given': discount,
        'total_revenue': original - discount,
        'average_discount': average,
    }
