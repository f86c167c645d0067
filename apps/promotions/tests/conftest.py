from decimal import Decimal

import pytest

from apps.promotions.models import PromoCode


@pytest.fixture
def percent_code(db):
    """Global 15 % code."""
    return PromoCode.objects.create(
        code='SURF15',
        discount_type=PromoCode.DiscountType.PERCENTAGE,
        discount_value=Decimal('15'),
    )


@pytest.fixture
def fixed_code(db):
    """Global €50 code with a minimum order amount."""
    return PromoCode.objects.create(
        code='FIFTY',
        discount_type=PromoCode.DiscountType.FIXED_AMOUNT,
        discount_value=Decimal('50'),
        min_order_amount=Decimal('500'),
    )
