"""
Site settings stored per section with code defaults.

Reads merge the stored JSON over the defaults below, so new keys become
available without a data migration.
"""

import copy
import logging

from django.conf import settings as django_settings

from ..models import SiteSetting
from .exceptions import UnknownSettingSectionError

logger = logging.getLogger(__name__)


def _default_admin_email():
    return django_settings.ADMIN_NOTIFICATION_EMAIL


DEFAULT_SETTINGS = {
    'general': {
        'siteName': 'Rainbow Surf Retreats',
        'siteDescription': 'Surf retreats for the LGBTQ+ community and friends',
        'contactPhone': '',
    },
    'email': {
        'contactEmail': 'hello@rainbowsurfretreats.com',
        'supportEmail': 'support@rainbowsurfretreats.com',
    },
    'payment': {
        'currency': 'EUR',
        'depositPercentage': 30,
        'stripeEnabled': True,
    },
    'booking': {
        'autoConfirm': False,
        'requireDeposit': True,
        'cancellationDays': 30,
        'maxParticipants': 14,
    },
    'notifications': {
        'emailNotifications': True,
        'bookingAlerts': True,
        'paymentAlerts': True,
        'marketingEmails': False,
        'weeklyReports': True,
    },
    'admin_notifications': {
        'generalEmail': None,
        'bookingsEmail': None,
        'paymentsEmail': None,
        'waitlistEmail': None,
        'supportEmail': None,
        'notifyOnNewBooking': True,
        'notifyOnPaymentReceived': True,
        'notifyOnPaymentFailed': True,
        'notifyOnWaitlistJoin': True,
        'notifyOnWaitlistResponse': True,
        'notifyOnSupportRequest': True,
    },
}


def get_setting(section: str) -> dict:
    """Return a settings section with defaults filled in."""
    if section not in DEFAULT_SETTINGS:
        raise UnknownSettingSectionError(f"Unknown settings section: {section}")

    value = copy.deepcopy(DEFAULT_SETTINGS[section])
    stored = SiteSetting.objects.filter(key=section).values_list('value', flat=True).first()
    if isinstance(stored, dict):
        value.update({k: v for k, v in stored.items() if k in value})
    return value


def get_all_settings() -> dict:
    return {section: get_setting(section) for section in DEFAULT_SETTINGS}


def update_setting(*, section: str, values: dict, user=None) -> dict:
    """
    Merge ``values`` into a section. Unknown keys are ignored.

    Raises:
        UnknownSettingSectionError: If the section does not exist
    """
    current = get_setting(section)
    current.update({k: v for k, v in values.items() if k in DEFAULT_SETTINGS[section]})
    SiteSetting.objects.update_or_create(
        key=section,
        defaults={
            'value': current,
            'updated_by': user if user is not None and user.is_authenticated else None,
        },
    )
    logger.info("Settings section %s updated", section)
    return current


def get_setting_value(section: str, key: str, default=None):
    return get_setting(section).get(key, default)


ADMIN_EMAIL_KEYS = {
    'general': 'generalEmail',
    'bookings': 'bookingsEmail',
    'payments': 'paymentsEmail',
    'waitlist': 'waitlistEmail',
    'support': 'supportEmail',
}


def get_admin_email(category: str = 'general') -> str:
    """Admin address for a notification category, falling back to the general one."""
    admin = get_setting('admin_notifications')
    key = ADMIN_EMAIL_KEYS.get(category, 'generalEmail')
    return admin.get(key) or admin.get('generalEmail') or _default_admin_email()


def admin_notification_enabled(toggle: str) -> bool:
    """Whether a ``notifyOn*`` toggle is switched on."""
    return bool(get_setting('admin_notifications').get(toggle, True))
