"""
API tests for payments.

Covers:
- Checkout request validation and error mapping
- Stripe webhook signature checks
- Pay-now redirects and the customer portal
- VAT ID validation and the admin VAT report
- Admin refunds and the installment list
"""

import hashlib
import hmac
import json
import time
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.urls import reverse
from rest_framework import status

from apps.bookings.models import Booking
from apps.payments.models import Payment, PaymentSchedule
from apps.payments.services import PaymentGatewayError

GATEWAY = 'apps.payments.services.gateway'


# ============================================================================
# CHECKOUT
# ============================================================================

@pytest.mark.django_db
class TestCheckoutEndpoint:

    @pytest.fixture
    def payload(self, retreat, room):
        return {
            'retreatSlug': retreat.slug,
            'roomId': str(room.id),
            'firstName': 'Jamie',
            'lastName': 'Fox',
            'email': 'jamie@example.com',
            'country': 'de',
        }

    @patch(f'{GATEWAY}.create_checkout_session')
    @patch(f'{GATEWAY}.get_or_create_customer', return_value='cus_new')
    def test_creates_session(self, mock_customer, mock_session, api_client, payload, stripe_session):
        mock_session.return_value = stripe_session
        response = api_client.post(reverse('payments:checkout'), payload, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['url'] == stripe_session.url
        assert response.data['bookingNumber'].startswith('RSR-')
        assert len(response.data['paymentSchedule']['payments']) == 3
        assert Booking.objects.get().country == 'DE'

    def test_requires_retreat(self, api_client, payload):
        del payload['retreatSlug']
        response = api_client.post(reverse('payments:checkout'), payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_business_requires_company(self, api_client, payload):
        payload['customerType'] = 'business'
        response = api_client.post(reverse('payments:checkout'), payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'companyName' in response.data

    def test_unknown_retreat(self, api_client, payload):
        payload['retreatSlug'] = 'nowhere'
        response = api_client.post(reverse('payments:checkout'), payload, format='json')
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_sold_out_room(self, api_client, payload, sold_out_room):
        payload['roomId'] = str(sold_out_room.id)
        response = api_client.post(reverse('payments:checkout'), payload, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @patch(f'{GATEWAY}.get_or_create_customer', side_effect=PaymentGatewayError('Stripe down'))
    def test_gateway_failure(self, mock_customer, api_client, payload):
        response = api_client.post(reverse('payments:checkout'), payload, format='json')

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data['error'] == 'Failed to create checkout session. Please try again.'
        assert Booking.objects.count() == 0


# ============================================================================
# STRIPE WEBHOOK
# ============================================================================

def _signed(payload: dict, secret: str = 'whsec_test'):
    body = json.dumps(payload)
    timestamp = int(time.time())
    signature = hmac.new(secret.encode(), f'{timestamp}.{body}'.encode(), hashlib.sha256).hexdigest()
    return body, f't={timestamp},v1={signature}'


@pytest.mark.django_db
class TestStripeWebhook:

    def test_missing_signature(self, api_client):
        response = api_client.post(reverse('payments:stripe-webhook'), '{}', content_type='application/json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_bad_signature(self, api_client):
        body, header = _signed({'id': 'evt_1', 'type': 'customer.created'}, secret='whsec_other')
        response = api_client.post(
            reverse('payments:stripe-webhook'), body,
            content_type='application/json', HTTP_STRIPE_SIGNATURE=header,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'Invalid signature'

    def test_signed_event_is_dispatched(self, api_client, booking, schedules):
        _, balance = schedules
        balance.stripe_payment_intent_id = 'pi_hook'
        balance.save()
        body, header = _signed({
            'id': 'evt_hook',
            'object': 'event',
            'type': 'payment_intent.payment_failed',
            'data': {'object': {'id': 'pi_hook', 'object': 'payment_intent',
                                'last_payment_error': {'message': 'Card expired'}}},
        })

        response = api_client.post(
            reverse('payments:stripe-webhook'), body,
            content_type='application/json', HTTP_STRIPE_SIGNATURE=header,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'received': True, 'outcome': 'processed'}
        balance.refresh_from_db()
        assert balance.status == PaymentSchedule.Status.FAILED


# ============================================================================
# CUSTOMER PAY-NOW & PORTAL
# ============================================================================

@pytest.mark.django_db
class TestEarlyPayment:

    @patch(f'{GATEWAY}.create_checkout_session')
    def test_redirects_to_stripe(self, mock_session, api_client, booking, schedules, stripe_session):
        mock_session.return_value = stripe_session
        _, balance = schedules
        url = reverse('payments:early-payment', args=[balance.id])

        response = api_client.get(url, {'token': booking.access_token})

        assert response.status_code == status.HTTP_302_FOUND
        assert response['Location'] == stripe_session.url
        assert mock_session.call_args.kwargs['metadata']['type'] == 'early_payment'

    def test_paid_installment_redirects_back(self, api_client, booking, schedules):
        deposit, _ = schedules
        url = reverse('payments:early-payment', args=[deposit.id])

        response = api_client.get(url, {'token': booking.access_token})

        assert response.status_code == status.HTTP_302_FOUND
        assert response['Location'].startswith('https://surf.test/my-booking?')
        assert 'error=already_paid' in response['Location']

    def test_bad_token(self, api_client, schedules):
        _, balance = schedules
        response = api_client.get(reverse('payments:early-payment', args=[balance.id]), {'token': 'nope'})
        assert 'error=invalid_token' in response['Location']


@pytest.mark.django_db
class TestCustomerPortal:

    @patch(f'{GATEWAY}.create_portal_session', return_value='https://billing.stripe.test/p/1')
    def test_portal_url(self, mock_portal, api_client, booking):
        response = api_client.post(
            reverse('payments:customer-portal'), {'token': booking.access_token}, format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['url'] == 'https://billing.stripe.test/p/1'

    def test_no_customer(self, api_client, booking):
        Booking.objects.filter(id=booking.id).update(stripe_customer_id='')
        response = api_client.post(
            reverse('payments:customer-portal'), {'token': booking.access_token}, format='json',
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unknown_token(self, api_client, db):
        response = api_client.post(reverse('payments:customer-portal'), {'token': 'x' * 64}, format='json')
        assert response.status_code == status.HTTP_404_NOT_FOUND


# ============================================================================
# VAT
# ============================================================================

@pytest.mark.django_db
class TestVatEndpoints:

    def test_validate_requires_fields(self, api_client):
        response = api_client.post(reverse('payments:vat-validate'), {'country': 'DE'}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['valid'] is False

    def test_validate_rejects_bad_format(self, api_client):
        response = api_client.post(
            reverse('payments:vat-validate'), {'vatId': 'DE12', 'country': 'DE'}, format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_report_requires_admin(self, user_client):
        response = user_client.get(reverse('payments:vat-report'))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_report_json(self, admin_client, booking):
        response = admin_client.get(reverse('payments:vat-report'))
        assert response.status_code == status.HTTP_200_OK
        assert response.data['totals']['total_bookings'] == 1

    def test_report_csv(self, admin_client, booking):
        response = admin_client.get(reverse('payments:vat-report'), {'format': 'csv'})

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'] == 'text/csv'
        assert 'attachment' in response['Content-Disposition']
        assert booking.booking_number in response.content.decode()

    def test_report_bad_date(self, admin_client):
        response = admin_client.get(reverse('payments:vat-report'), {'from': '01/02/2026'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST


# ============================================================================
# ADMIN REFUNDS & INSTALLMENTS
# ============================================================================

@pytest.mark.django_db
class TestRefundEndpoint:

    def test_requires_admin(self, user_client, deposit_payment):
        response = user_client.post(
            reverse('payments:refunds'), {'paymentId': str(deposit_payment.id)}, format='json',
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    @patch(f'{GATEWAY}.create_refund', return_value={'id': 're_admin'})
    def test_refund(self, mock_refund, admin_client, deposit_payment):
        response = admin_client.post(
            reverse('payments:refunds'),
            {'paymentId': str(deposit_payment.id), 'amount': '40.00', 'reason': 'Goodwill'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['success'] is True
        assert Payment.objects.get(stripe_refund_id='re_admin').amount == Decimal('-40.00')

    @patch(f'{GATEWAY}.create_refund', side_effect=PaymentGatewayError('charge_already_refunded'))
    def test_gateway_error(self, mock_refund, admin_client, deposit_payment):
        response = admin_client.post(
            reverse('payments:refunds'), {'paymentId': str(deposit_payment.id)}, format='json',
        )
        assert response.status_code == status.HTTP_502_BAD_GATEWAY

    def test_cancel_installment(self, admin_client, schedules):
        _, balance = schedules
        response = admin_client.post(
            reverse('payments:refunds'), {'action': 'cancel', 'scheduleId': str(balance.id)}, format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        balance.refresh_from_db()
        assert balance.status == PaymentSchedule.Status.CANCELLED

    def test_cancel_paid_installment(self, admin_client, schedules):
        deposit, _ = schedules
        response = admin_client.post(
            reverse('payments:refunds'), {'action': 'cancel', 'scheduleId': str(deposit.id)}, format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_refund_requires_payment_id(self, admin_client, db):
        response = admin_client.post(reverse('payments:refunds'), {'action': 'refund'}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestScheduleList:

    def test_list_and_filter(self, admin_client, schedules):
        url = reverse('payments:schedule-list')

        response = admin_client.get(url)
        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2

        response = admin_client.get(url, {'status': 'pending'})
        assert response.data['count'] == 1

    def test_overdue_filter(self, admin_client, schedules):
        from datetime import timedelta
        from django.utils import timezone

        _, balance = schedules
        balance.due_date = timezone.localdate() - timedelta(days=2)
        balance.save()

        response = admin_client.get(reverse('payments:schedule-list'), {'overdue': 'true'})
        assert response.data['count'] == 1
