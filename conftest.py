"""Fixtures shared by every app's tests."""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User
from apps.bookings.models import Booking
from apps.bookings.services import create_booking
from apps.payments.models import PaymentSchedule
from apps.retreats.models import Retreat, RetreatRoom


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    """Account holding the admin role."""
    return User.objects.create_admin(
        email='admin@example.com',
        password='AdminPass123!',
        display_name='Retreat Admin',
    )


@pytest.fixture
def regular_user(db):
    """An account without the admin role."""
    return User.objects.create_user(
        email='member@example.com',
        password='MemberPass123!',
        display_name='Team Member',
    )


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def admin_client(admin_user):
    """Return an API client authenticated as an admin using JWT."""
    return _client_for(admin_user)


@pytest.fixture
def user_client(regular_user):
    """Return an API client authenticated as a non-admin."""
    return _client_for(regular_user)


@pytest.fixture
def retreat(db):
    """Published retreat starting in about four months."""
    start = timezone.localdate() + timedelta(days=120)
    return Retreat.objects.create(
        slug='siargao-surf-retreat',
        destination='Siargao',
        title='Siargao Surf Retreat',
        location='Siargao, Philippines',
        price=Decimal('1200.00'),
        start_date=start,
        end_date=start + timedelta(days=7),
        is_published=True,
    )


@pytest.fixture
def room(retreat):
    return RetreatRoom.objects.create(
        retreat=retreat,
        name='Ocean View Double',
        price=Decimal('1200.00'),
        capacity=2,
        available=2,
    )


@pytest.fixture
def sold_out_room(retreat):
    return RetreatRoom.objects.create(
        retreat=retreat,
        name='Beach Hut',
        price=Decimal('900.00'),
        capacity=1,
        available=0,
        is_sold_out=True,
        sort_order=1,
    )


@pytest.fixture
def booking(retreat, room):
    """Confirmed booking with its deposit paid and a balance installment pending."""
    return create_booking(
        retreat=retreat,
        room=room,
        first_name='Alex',
        last_name='Rivera',
        email='alex@example.com',
        country='DE',
        subtotal=Decimal('1200.00'),
        total_amount=Decimal('1200.00'),
        deposit_amount=Decimal('120.00'),
        balance_due=Decimal('1080.00'),
        status=Booking.Status.CONFIRMED,
        payment_status=Booking.PaymentStatus.DEPOSIT,
        check_in_date=retreat.start_date,
        check_out_date=retreat.end_date,
        stripe_customer_id='cus_test123',
        stripe_payment_method_id='pm_test123',
    )


@pytest.fixture
def schedules(booking):
    """Paid deposit plus one pending balance installment."""
    deposit = PaymentSchedule.objects.create(
        booking=booking,
        payment_number=1,
        amount=Decimal('120.00'),
        due_date=timezone.localdate(),
        payment_type=PaymentSchedule.PaymentType.DEPOSIT,
        description='Deposit (10%)',
        status=PaymentSchedule.Status.PAID,
        paid_at=timezone.now(),
    )
    balance = PaymentSchedule.objects.create(
        booking=booking,
        payment_number=2,
        amount=Decimal('1080.00'),
        due_date=timezone.localdate() + timedelta(days=30),
        payment_type=PaymentSchedule.PaymentType.BALANCE,
        description='Balance',
    )
    return deposit, balance


@pytest.fixture
def cron_headers(settings):
    return {'HTTP_AUTHORIZATION': f'Bearer {settings.CRON_SECRET}'}


@pytest.fixture
def mock_resend(settings):
    """Configure Resend and capture outgoing emails instead of sending them."""
    settings.RESEND_API_KEY = 're_test_key'
    with patch('apps.notifications.services.sender.resend.Emails.send') as mock_send:
        mock_send.return_value = {'id': 'email_test_123'}
        yield mock_send
