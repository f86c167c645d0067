"""
Waitlist queue for sold-out retreats.

Entries are numbered per retreat in join order. An admin offers a freed
spot to an entry; the offer carries a one-time response token and expires
after 72 hours.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Optional
from urllib.parse import urlencode

from django.conf import settings
from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from apps.notifications.services import (
    send_waitlist_confirmation,
    send_waitlist_spot_available,
    send_waitlist_accepted,
    send_waitlist_declined,
    send_waitlist_expired,
    notify_admin_waitlist_join,
    notify_admin_waitlist_response,
)
from apps.retreats.models import Retreat, RetreatRoom
from apps.retreats.services import months_between
from ..models import WaitlistEntry
from .exceptions import WaitlistNotFoundError, WaitlistStateError, OfferExpiredError

logger = logging.getLogger(__name__)

OFFER_HOURS = 72
ACCEPT = 'accept'
DECLINE = 'decline'

RESPONSE_STATUS_MESSAGES = {
    WaitlistEntry.Status.WAITING: 'You have not been notified about an available spot yet.',
    WaitlistEntry.Status.ACCEPTED: 'You have already accepted this offer.',
    WaitlistEntry.Status.DECLINED: 'You have already declined this offer.',
    WaitlistEntry.Status.EXPIRED: 'This offer has expired.',
    WaitlistEntry.Status.BOOKED: 'You have already completed your booking.',
}


@dataclass
class JoinResult:
    entry: WaitlistEntry
    created: bool = False
    rejoined: bool = False

    @property
    def message(self) -> str:
        if self.created:
            return f"You have been added to the waitlist at position #{self.entry.position}"
        if self.rejoined:
            return f"You have rejoined the waitlist at position #{self.entry.position}"
        return 'You are already on the waitlist for this retreat'


@dataclass
class Offer:
    entry: WaitlistEntry
    room_name: str
    price: Decimal
    deposit_percent: int
    accept_url: str
    decline_url: str

    @property
    def deposit_amount(self) -> Decimal:
        return (self.price * self.deposit_percent / 100).quantize(Decimal('0.01'))


@dataclass
class QueuePosition:
    position: int
    status: str


def _next_position(retreat: Retreat) -> int:
    highest = WaitlistEntry.objects.filter(retreat=retreat).aggregate(highest=Max('position'))['highest']
    return (highest or 0) + 1


def _send_join_emails(entry: WaitlistEntry) -> None:
    send_waitlist_confirmation(entry)
    notify_admin_waitlist_join(entry)


@transaction.atomic
def join_waitlist(
    *,
    retreat_id,
    email: str,
    first_name: str,
    last_name: str,
    room_id=None,
    phone: str = '',
    guests_count: int = 1,
    notes: str = '',
) -> JoinResult:
    """
    Put a customer on a retreat's waitlist.

    Existing waiting or notified entries keep their place; expired and
    declined entries go back to waiting with their old position.

    Raises:
        WaitlistNotFoundError: Retreat or room does not exist
        WaitlistStateError: Retreat unpublished or started, room still bookable,
            or the customer already accepted or booked
    """
    # Lock the retreat so concurrent joins get distinct positions.
    retreat = Retreat.objects.alive().select_for_update().filter(id=retreat_id).first()
    if retreat is None:
        raise WaitlistNotFoundError("Retreat not found")
    if not retreat.is_published:
        raise WaitlistStateError("This retreat is not available")
    if retreat.has_started:
        raise WaitlistStateError("This retreat has already started")

    room = None
    if room_id:
        room = RetreatRoom.objects.filter(id=room_id, retreat=retreat).first()
        if room is None:
            raise WaitlistNotFoundError("Room not found")
        if not room.is_sold_out and room.available > 0:
            raise WaitlistStateError("This room is still available. Please proceed with booking.")

    email = email.strip().lower()
    entry = WaitlistEntry.objects.select_for_update().filter(retreat=retreat, email=email).first()

    if entry is not None:
        if entry.is_queued:
            return JoinResult(entry=entry)
        if entry.status not in (WaitlistEntry.Status.EXPIRED, WaitlistEntry.Status.DECLINED):
            raise WaitlistStateError("You have already booked or accepted an offer for this retreat")

        entry.status = WaitlistEntry.Status.WAITING
        entry.room = room
        entry.first_name = first_name
        entry.last_name = last_name
        entry.phone = phone
        entry.guests_count = guests_count
        entry.notes = notes
        entry.notified_at = None
        entry.notification_expires_at = None
        entry.responded_at = None
        entry.response_token = None
        entry.save()
        logger.info("%s rejoined the waitlist for %s at #%s", email, retreat.slug, entry.position)
        transaction.on_commit(lambda: _send_join_emails(entry))
        return JoinResult(entry=entry, rejoined=True)

    entry = WaitlistEntry.objects.create(
        retreat=retreat,
        room=room,
        email=email,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        guests_count=guests_count,
        notes=notes,
        position=_next_position(retreat),
    )
    logger.info("%s joined the waitlist for %s at #%s", email, retreat.slug, entry.position)
    transaction.on_commit(lambda: _send_join_emails(entry))
    return JoinResult(entry=entry, created=True)


def get_position(*, retreat_id, email: str) -> QueuePosition:
    """
    Live queue position of an entry.

    The position is recomputed among queued entries so people move up as
    others leave; entries no longer queued report position 0.

    Raises:
        WaitlistNotFoundError: Not on the waitlist
    """
    entry = WaitlistEntry.objects.filter(retreat_id=retreat_id, email=email.strip().lower()).first()
    if entry is None:
        raise WaitlistNotFoundError("Not on waitlist")

    position = 0
    if entry.is_queued:
        position = WaitlistEntry.objects.filter(
            retreat_id=retreat_id,
            status__in=[WaitlistEntry.Status.WAITING, WaitlistEntry.Status.NOTIFIED],
            position__lte=entry.position,
        ).count()
    return QueuePosition(position=position, status=entry.status)


def _offer_room(entry: WaitlistEntry):
    if entry.room is not None:
        return entry.room
    rooms = RetreatRoom.objects.filter(retreat_id=entry.retreat_id)
    return rooms.filter(is_sold_out=False).first() or rooms.first()


def respond_url(token: str, action: str) -> str:
    return f"{settings.SITE_URL}/waitlist/respond?token={token}&action={action}"


def notify_entry(*, entry_id, now=None) -> Offer:
    """
    Offer a freed spot to a waitlist entry.

    The deposit asked for is 10% when the retreat is at least two months
    away and 50% otherwise. If the offer email cannot be sent the entry is
    put back to waiting and the offer is withdrawn.

    Raises:
        WaitlistNotFoundError: Unknown entry
        WaitlistStateError: Offer still open, entry already accepted or booked,
            retreat started, or offer email failed
    """
    now = now or timezone.now()
    with transaction.atomic():
        entry = (
            WaitlistEntry.objects.select_for_update()
            .select_related('retreat', 'room')
            .filter(id=entry_id)
            .first()
        )
        if entry is None:
            raise WaitlistNotFoundError("Waitlist entry not found")
        if entry.status == WaitlistEntry.Status.NOTIFIED and entry.notification_expires_at and entry.notification_expires_at > now:
            raise WaitlistStateError("This entry has already been notified and the offer is still active")
        if entry.status in (WaitlistEntry.Status.ACCEPTED, WaitlistEntry.Status.BOOKED):
            raise WaitlistStateError(f"This entry is already {entry.status}")
        if entry.retreat.has_started:
            raise WaitlistStateError("Cannot notify - retreat has already started")

        previous_status = entry.status
        entry.status = WaitlistEntry.Status.NOTIFIED
        entry.notified_at = now
        entry.notification_expires_at = now + timedelta(hours=OFFER_HOURS)
        entry.response_token = secrets.token_hex(32)
        entry.save()

    room = _offer_room(entry)
    start = entry.retreat.start_date
    deposit_percent = 10 if start and months_between(timezone.localdate(now), start) >= 2 else 50
    offer = Offer(
        entry=entry,
        room_name=room.name if room else 'Standard Room',
        price=room.price if room else Decimal('0'),
        deposit_percent=deposit_percent,
        accept_url=respond_url(entry.response_token, ACCEPT),
        decline_url=respond_url(entry.response_token, DECLINE),
    )

    sent = send_waitlist_spot_available(
        entry,
        accept_url=offer.accept_url,
        decline_url=offer.decline_url,
        price=offer.price,
        deposit_percent=deposit_percent,
        expires_at=entry.notification_expires_at,
    )
    if not sent:
        entry.status = previous_status
        entry.notified_at = None
        entry.notification_expires_at = None
        entry.response_token = None
        entry.save()
        raise WaitlistStateError("Failed to send notification email")

    logger.info("Waitlist offer sent to %s for %s", entry.email, entry.retreat.slug)
    return offer


def booking_url(entry: WaitlistEntry) -> str:
    params = {'slug': entry.retreat.slug}
    if entry.room_id:
        params['room'] = str(entry.room_id)
    params['waitlist'] = str(entry.id)
    params['email'] = entry.email
    return f"{settings.SITE_URL}/booking?{urlencode(params)}"


def get_offer(*, token: str) -> WaitlistEntry:
    """
    Entry behind a response link, for the page that shows the offer.

    Raises:
        WaitlistNotFoundError: Unknown token
    """
    entry = WaitlistEntry.objects.select_related('retreat', 'room').filter(response_token=token).first() if token else None
    if entry is None:
        raise WaitlistNotFoundError("Invalid response link")
    return entry


def respond_to_offer(*, token: str, action: str) -> Optional[str]:
    """
    Accept or decline a spot offer.

    Returns:
        The prefilled booking URL on accept, None on decline

    Raises:
        WaitlistNotFoundError: Unknown token
        WaitlistStateError: Entry is not awaiting a response
        OfferExpiredError: Offer deadline passed (entry marked expired)
    """
    with transaction.atomic():
        entry = (
            WaitlistEntry.objects.select_for_update()
            .select_related('retreat', 'room')
            .filter(response_token=token)
            .first()
        )
        if entry is None:
            raise WaitlistNotFoundError("Invalid or expired response link. Please contact us for assistance.")
        if entry.status != WaitlistEntry.Status.NOTIFIED:
            raise WaitlistStateError(RESPONSE_STATUS_MESSAGES.get(entry.status, 'Invalid entry status.'))
        expired = entry.offer_expired
        if expired:
            entry.status = WaitlistEntry.Status.EXPIRED
        else:
            entry.status = WaitlistEntry.Status.ACCEPTED if action == ACCEPT else WaitlistEntry.Status.DECLINED
            entry.responded_at = timezone.now()
        entry.save()

    if expired:
        raise OfferExpiredError("This offer has expired. Please contact us if you are still interested.")

    logger.info("Waitlist entry %s %s the offer", entry.email, entry.status)
    if action == ACCEPT:
        url = booking_url(entry)
        send_waitlist_accepted(entry, booking_url=url)
        notify_admin_waitlist_response(entry, response=WaitlistEntry.Status.ACCEPTED)
        return url

    send_waitlist_declined(entry)
    notify_admin_waitlist_response(entry, response=WaitlistEntry.Status.DECLINED)
    return None


def expire_notifications(*, now=None, dry_run: bool = False) -> dict:
    """
    Expire offers past their 72-hour deadline and tell each customer.

    Returns:
        {expired, emailErrors, total}
    """
    now = now or timezone.now()
    logger.info("Expiring waitlist offers older than %s", now)

    stale = list(
        WaitlistEntry.objects
        .filter(status=WaitlistEntry.Status.NOTIFIED, notification_expires_at__lt=now)
        .select_related('retreat', 'room')
    )
    expired = 0
    email_errors = 0
    for entry in stale:
        if dry_run:
            expired += 1
            continue
        updated = WaitlistEntry.objects.filter(
            id=entry.id, status=WaitlistEntry.Status.NOTIFIED,
        ).update(status=WaitlistEntry.Status.EXPIRED, updated_at=now)
        if not updated:
            continue
        expired += 1
        entry.status = WaitlistEntry.Status.EXPIRED
        if not send_waitlist_expired(entry):
            email_errors += 1
        logger.info("Waitlist offer for %s expired", entry.email)

    logger.info("Expired %s waitlist offers (%s email errors)", expired, email_errors)
    return {'expired': expired, 'emailErrors': email_errors, 'total': len(stale)}
