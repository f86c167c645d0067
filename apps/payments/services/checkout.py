"""
Customer checkout: price a room, create the booking and its payment plan,
and open a Stripe Checkout session for the first installment.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.bookings.models import Booking
from apps.bookings.services import create_booking
from apps.promotions.services import (
    PromoCodeInvalidError,
    PromoCodeLimitReachedError,
    SOURCE_PROMO_CODE,
    SOURCE_EARLY_BIRD,
    validate_promo_code,
    resolve_room_discount,
    redeem_promo_code,
    release_promo_code,
)
from apps.retreats.models import Retreat, RetreatRoom
from ..models import Payment, PaymentSchedule
from . import gateway
from .exceptions import CheckoutError, CheckoutNotFoundError, PaymentGatewayError
from .schedule import PAYMENT_TYPE_FULL, PaymentPlan, calculate_payment_schedule
from .vat import calculate_vat

logger = logging.getLogger(__name__)

PROMO_LIMIT_MESSAGE = "Promo code usage limit reached. Please try again without the promo code."


@dataclass
class CheckoutResult:
    booking: Booking
    session_url: str
    session_id: str
    plan: PaymentPlan
    payment_type: str

    def as_dict(self) -> dict:
        return {
            'url': self.session_url,
            'sessionId': self.session_id,
            'bookingId': str(self.booking.id),
            'bookingNumber': self.booking.booking_number,
            'paymentSchedule': None if self.payment_type == PAYMENT_TYPE_FULL else self.plan.as_dict(),
        }


def _find_retreat(*, retreat_slug: Optional[str], retreat_id=None) -> Retreat:
    retreats = Retreat.objects.alive().filter(is_published=True)
    retreat = None
    if retreat_id:
        retreat = retreats.filter(id=retreat_id).first()
    elif retreat_slug:
        retreat = retreats.filter(slug=retreat_slug).first()
    if retreat is None:
        raise CheckoutNotFoundError("Retreat not found")
    return retreat


def _find_room(retreat: Retreat, room_id) -> RetreatRoom:
    if not room_id:
        raise CheckoutError("Please select a room")
    room = RetreatRoom.objects.filter(id=room_id, retreat=retreat).first()
    if room is None:
        raise CheckoutError("Selected room does not belong to this retreat")
    if room.is_sold_out or room.available <= 0:
        raise CheckoutError("This room type is no longer available. Please select a different room.")
    return room


def absolute_image_url(image_url: str) -> Optional[str]:
    if not image_url:
        return None
    if image_url.startswith(('http://', 'https://')):
        return image_url
    return f"{settings.SITE_URL}/{image_url.lstrip('/')}"


def _first_payment_label(plan: PaymentPlan, payment_type: str) -> str:
    if payment_type == PAYMENT_TYPE_FULL:
        return 'Full Payment'
    return 'First Payment (50%)' if plan.is_late_booking else 'Deposit (10%)'


def create_checkout(*, data: dict, booking_date: Optional[date] = None) -> CheckoutResult:
    """
    Turn a validated checkout request into a pending booking and a Stripe session.

    ``data`` carries the checkout serializer's validated fields.

    Raises:
        CheckoutNotFoundError: Unknown or unpublished retreat
        CheckoutError: Missing or sold-out room, or a promo code that cannot be used
        PaymentGatewayError: Stripe failed; the booking has been removed again
    """
    booking_date = booking_date or timezone.localdate()
    retreat = _find_retreat(retreat_slug=data.get('retreat_slug'), retreat_id=data.get('retreat_id'))
    room = _find_room(retreat, data.get('room_id'))
    base_price = room.price

    promo = None
    if data.get('promo_code'):
        try:
            promo = validate_promo_code(
                code=data['promo_code'],
                retreat_id=retreat.id,
                room_id=room.id,
                order_amount=base_price,
                today=booking_date,
            )
        except PromoCodeInvalidError as e:
            raise CheckoutError(str(e)) from e

    discount = resolve_room_discount(room=room, promo=promo, booking_date=booking_date)
    effective_price = base_price - discount.amount
    payment_type = data.get('payment_type') or 'deposit'

    plan = calculate_payment_schedule(
        total=effective_price,
        booking_date=booking_date,
        retreat_start=retreat.start_date,
        payment_type=payment_type,
    )

    customer_type = data.get('customer_type') or Booking.CustomerType.PRIVATE
    is_business = customer_type == Booking.CustomerType.BUSINESS
    vat_id_valid = bool(data.get('vat_id_valid')) and is_business
    country = (data.get('country') or '').upper()

    charge_amount = plan.total_amount if payment_type == PAYMENT_TYPE_FULL else plan.first.amount
    charge_vat = calculate_vat(charge_amount, country, customer_type, vat_id_valid)
    full_vat = calculate_vat(plan.total_amount, country, customer_type, vat_id_valid)

    used_promo = promo if discount.source == SOURCE_PROMO_CODE else None

    with transaction.atomic():
        booking = create_booking(
            retreat=retreat,
            room=room,
            first_name=data['first_name'],
            last_name=data['last_name'],
            email=data['email'].lower(),
            phone=data.get('phone', ''),
            billing_address=data.get('billing_address', ''),
            city=data.get('city', ''),
            postal_code=data.get('postal_code', ''),
            country=country,
            guests_count=data.get('guests_count') or 1,
            check_in_date=retreat.start_date,
            check_out_date=retreat.end_date,
            subtotal=plan.total_amount,
            vat_rate=full_vat.rate,
            vat_amount=full_vat.amount,
            total_amount=full_vat.total,
            deposit_amount=charge_vat.total,
            balance_due=Decimal('0.00') if payment_type == PAYMENT_TYPE_FULL else full_vat.total - charge_vat.total,
            discount_amount=discount.amount,
            discount_code=used_promo.code if used_promo else '',
            discount_source=discount.source or '',
            is_early_bird=discount.source == SOURCE_EARLY_BIRD,
            early_bird_discount=discount.amount if discount.source == SOURCE_EARLY_BIRD else Decimal('0.00'),
            promo_code=used_promo,
            customer_type=customer_type,
            company_name=data.get('company_name', '') if is_business else '',
            vat_id=data.get('vat_id', '') if is_business else '',
            vat_id_valid=vat_id_valid,
            vat_id_validated_at=timezone.now() if vat_id_valid else None,
            language=data.get('language') or 'en',
            newsletter_opt_in=bool(data.get('newsletter_opt_in')),
            special_requests=data.get('special_requests', ''),
        )

        if used_promo is not None:
            try:
                redeem_promo_code(
                    promo=used_promo,
                    booking=booking,
                    original_amount=base_price,
                    discount_applied=discount.amount,
                    final_amount=effective_price,
                )
            except PromoCodeLimitReachedError as e:
                logger.info("Promo %s ran out during checkout for %s", used_promo.code, data['email'])
                raise CheckoutError(PROMO_LIMIT_MESSAGE) from e

    try:
        session = _open_session(booking=booking, retreat=retreat, room=room, plan=plan,
                                payment_type=payment_type, charge_vat=charge_vat, data=data)
    except PaymentGatewayError:
        logger.exception("Checkout session failed, removing booking %s", booking.booking_number)
        _discard_booking(booking)
        raise

    logger.info(
        "Checkout %s opened for %s (%s, %s EUR)",
        booking.booking_number, booking.email, payment_type, charge_vat.total,
    )
    return CheckoutResult(
        booking=booking,
        session_url=session.url,
        session_id=session.id,
        plan=plan,
        payment_type=payment_type,
    )


@transaction.atomic
def _discard_booking(booking) -> None:
    # The promo use goes back before the redemption row disappears with the booking.
    release_promo_code(booking=booking)
    PaymentSchedule.objects.filter(booking=booking).delete()
    booking.delete()


def _open_session(*, booking, retreat, room, plan, payment_type, charge_vat, data):
    customer_id = None
    if payment_type != PAYMENT_TYPE_FULL:
        address = None
        if booking.billing_address:
            address = {
                'line1': booking.billing_address,
                'city': booking.city or None,
                'postal_code': booking.postal_code or None,
                'country': booking.country,
            }
        customer_id = gateway.get_or_create_customer(
            email=booking.email,
            name=booking.full_name,
            phone=booking.phone,
            address=address,
            metadata={'booking_id': str(booking.id)},
        )
        booking.stripe_customer_id = customer_id
        booking.save(update_fields=['stripe_customer_id', 'updated_at'])

        PaymentSchedule.objects.bulk_create([
            PaymentSchedule(
                booking=booking,
                payment_number=item.payment_number,
                amount=calculate_vat(item.amount, booking.country, booking.customer_type, booking.vat_id_valid).total,
                due_date=item.due_date,
                description=item.description,
                payment_type=item.payment_type,
                status=PaymentSchedule.Status.PROCESSING if item.payment_number == 1 else PaymentSchedule.Status.PENDING,
            )
            for item in plan.items
        ])

    cancel_url = f"{settings.SITE_URL}/booking?slug={retreat.slug}&room_id={room.id}"
    session = gateway.create_checkout_session(
        amount=charge_vat.total,
        product_name=f"{retreat.destination} Surf Retreat",
        description=(
            f"{retreat.start_date} - {retreat.end_date} | {room.name} | "
            f"{_first_payment_label(plan, payment_type)}"
        ),
        metadata={
            'booking_id': booking.id,
            'booking_number': booking.booking_number,
            'retreat_id': retreat.id,
            'room_id': room.id,
            'payment_type': payment_type,
            'payment_number': 1,
            'is_late_booking': str(plan.is_late_booking).lower(),
            'is_early_bird': str(booking.is_early_bird).lower(),
            'language': booking.language,
            'vat_rate': charge_vat.rate,
            'vat_amount': charge_vat.amount,
            'customer_type': booking.customer_type,
            'is_reverse_charge': str(charge_vat.is_reverse_charge).lower(),
            'company_name': booking.company_name,
            'vat_id': booking.vat_id,
        },
        success_url=(
            f"{settings.SITE_URL}/booking/success?session_id={{CHECKOUT_SESSION_ID}}&booking_id={booking.id}"
        ),
        cancel_url=cancel_url,
        customer_id=customer_id,
        customer_email=booking.email,
        save_card=payment_type != PAYMENT_TYPE_FULL,
        image_url=absolute_image_url(retreat.image_url),
        client_reference_id=str(booking.id),
    )

    Payment.objects.create(
        booking=booking,
        payment_schedule=PaymentSchedule.objects.filter(booking=booking, payment_number=1).first(),
        stripe_checkout_session_id=session.id,
        stripe_customer_id=customer_id or '',
        amount=charge_vat.total,
        payment_type=Payment.PaymentType.FULL if payment_type == PAYMENT_TYPE_FULL else Payment.PaymentType.DEPOSIT,
        status=Payment.Status.PENDING,
    )
    return session
