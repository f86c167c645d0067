"""Authentication for scheduled job endpoints."""

import hmac
import logging

from django.conf import settings
from rest_framework import permissions

logger = logging.getLogger(__name__)


class HasCronSecret(permissions.BasePermission):
    """Require ``Authorization: Bearer <CRON_SECRET>``. Always deny when no secret is configured."""

    message = "Unauthorized"

    def has_permission(self, request, view):
        secret = settings.CRON_SECRET
        if not secret:
            logger.error("CRON_SECRET not configured - rejecting cron request")
            return False
        header = request.META.get('HTTP_AUTHORIZATION', '')
        return hmac.compare_digest(header.encode(), f'Bearer {secret}'.encode())
