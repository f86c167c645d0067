"""
Thin wrapper around the Stripe SDK.

Amounts enter and leave this module in euros as ``Decimal``; Stripe sees
integer cents. Every Stripe failure surfaces as ``PaymentGatewayError``.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import stripe
from django.conf import settings

from .exceptions import PaymentGatewayError, WebhookVerificationError

logger = logging.getLogger(__name__)


def _configure():
    if not settings.STRIPE_SECRET_KEY:
        raise PaymentGatewayError("Stripe is not configured")
    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.api_version = settings.STRIPE_API_VERSION


def to_cents(amount) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def from_cents(cents) -> Decimal:
    return (Decimal(cents or 0) / 100).quantize(Decimal('0.01'))


def get_or_create_customer(*, email: str, name: str, phone: str = '', address: Optional[dict] = None, metadata=None) -> str:
    """Reuse the Stripe customer with this email or create one."""
    _configure()
    try:
        existing = stripe.Customer.list(email=email, limit=1)
        if existing.data:
            return existing.data[0].id
        params = {'email': email, 'name': name, 'metadata': metadata or {}}
        if phone:
            params['phone'] = phone
        if address:
            params['address'] = address
        return stripe.Customer.create(**params).id
    except stripe.StripeError as e:
        logger.error("Stripe customer lookup failed for %s: %s", email, e)
        raise PaymentGatewayError(str(e)) from e


def create_checkout_session(
    *,
    amount,
    product_name: str,
    description: str,
    metadata: dict,
    success_url: str,
    cancel_url: str,
    customer_id: Optional[str] = None,
    customer_email: Optional[str] = None,
    save_card: bool = False,
    image_url: Optional[str] = None,
    client_reference_id: Optional[str] = None,
):
    """One-line-item card checkout in EUR."""
    _configure()
    product_data = {'name': product_name, 'description': description}
    if image_url:
        product_data['images'] = [image_url]

    params = {
        'payment_method_types': ['card'],
        'mode': 'payment',
        'line_items': [{
            'price_data': {
                'currency': settings.PAYMENT_CURRENCY,
                'product_data': product_data,
                'unit_amount': to_cents(amount),
            },
            'quantity': 1,
        }],
        'metadata': {k: '' if v is None else str(v) for k, v in metadata.items()},
        'success_url': success_url,
        'cancel_url': cancel_url,
    }
    if client_reference_id:
        params['client_reference_id'] = client_reference_id
    if customer_id:
        params['customer'] = customer_id
    elif customer_email:
        params['customer_email'] = customer_email
    if save_card and customer_id:
        params['payment_intent_data'] = {'setup_future_usage': 'off_session'}

    try:
        return stripe.checkout.Session.create(**params)
    except stripe.StripeError as e:
        logger.error("Stripe checkout session failed: %s", e)
        raise PaymentGatewayError(str(e)) from e


def retrieve_payment_intent(payment_intent_id: str):
    _configure()
    try:
        return stripe.PaymentIntent.retrieve(payment_intent_id)
    except stripe.StripeError as e:
        raise PaymentGatewayError(str(e)) from e


def charge_off_session(*, amount, customer_id: str, payment_method_id: str, description: str, metadata: dict, idempotency_key: str):
    """
    Charge a saved card without the customer present.

    Returns the PaymentIntent. Card declines raise ``PaymentGatewayError``
    with Stripe's message.
    """
    _configure()
    try:
        return stripe.PaymentIntent.create(
            amount=to_cents(amount),
            currency=settings.PAYMENT_CURRENCY,
            customer=customer_id,
            payment_method=payment_method_id,
            off_session=True,
            confirm=True,
            description=description,
            metadata={k: str(v) for k, v in metadata.items()},
            idempotency_key=idempotency_key,
        )
    except stripe.StripeError as e:
        message = getattr(e, 'user_message', None) or str(e)
        logger.warning("Off-session charge failed (%s): %s", idempotency_key, message)
        raise PaymentGatewayError(message) from e


def create_refund(*, payment_intent_id: str, amount=None, metadata=None):
    """Refund a PaymentIntent, fully when ``amount`` is None."""
    _configure()
    params = {
        'payment_intent': payment_intent_id,
        'reason': 'requested_by_customer',
        'metadata': metadata or {},
    }
    if amount is not None:
        params['amount'] = to_cents(amount)
    try:
        return stripe.Refund.create(**params)
    except stripe.StripeError as e:
        logger.error("Stripe refund failed for %s: %s", payment_intent_id, e)
        raise PaymentGatewayError(str(e)) from e


def create_portal_session(*, customer_id: str, return_url: str) -> str:
    _configure()
    try:
        return stripe.billing_portal.Session.create(customer=customer_id, return_url=return_url).url
    except stripe.StripeError as e:
        logger.error("Stripe billing portal failed for %s: %s", customer_id, e)
        raise PaymentGatewayError(str(e)) from e


def construct_webhook_event(*, payload: bytes, signature: str):
    """
    Verify a webhook delivery and parse it.

    Raises:
        WebhookVerificationError: For a bad signature or unreadable payload
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise WebhookVerificationError("Webhook secret not configured")
    if not signature:
        raise WebhookVerificationError("Missing stripe-signature header")
    try:
        return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except ValueError as e:
        raise WebhookVerificationError("Invalid payload") from e
    except stripe.SignatureVerificationError as e:
        raise WebhookVerificationError("Invalid signature") from e
