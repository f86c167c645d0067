"""Password login for the retreat team."""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from .exceptions import InvalidCredentialsError, InactiveAccountError

User = get_user_model()
logger = logging.getLogger(__name__)


@transaction.atomic
def authenticate_user(*, email: str, password: str) -> User:
    """
    Check a team member's email and password and stamp ``last_login``.

    The account row is locked while ``last_login`` is written so two logins
    in parallel do not race.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        InactiveAccountError: Account switched off
    """
    user = User.objects.select_for_update().filter(email__iexact=email.strip()).first()
    if user is None or not user.check_password(password):
        logger.info("Rejected login for %s", email)
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_active:
        logger.info("Rejected login for deactivated account %s", user.email)
        raise InactiveAccountError("This account has been deactivated")

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    logger.info("Team member %s signed in as %s", user.email, user.role)
    return user
