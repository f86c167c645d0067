from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from apps.payments.models import Payment


@pytest.fixture
def checkout_data(retreat, room):
    """Validated checkout fields for a private customer from Germany."""
    return {
        'retreat_slug': retreat.slug,
        'room_id': room.id,
        'first_name': 'Jamie',
        'last_name': 'Fox',
        'email': 'Jamie@Example.com',
        'country': 'DE',
        'payment_type': 'deposit',
    }


@pytest.fixture
def stripe_session():
    return MagicMock(id='cs_test_1', url='https://checkout.stripe.test/cs_test_1')


@pytest.fixture
def deposit_payment(booking, schedules):
    """The succeeded deposit charge of the shared booking."""
    deposit, _ = schedules
    deposit.stripe_payment_intent_id = 'pi_deposit'
    deposit.save()
    return Payment.objects.create(
        booking=booking,
        payment_schedule=deposit,
        stripe_payment_intent_id='pi_deposit',
        amount=Decimal('120.00'),
        payment_type=Payment.PaymentType.DEPOSIT,
        status=Payment.Status.SUCCEEDED,
    )
