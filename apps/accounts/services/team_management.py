"""
Team roster and role changes.

Role changes lock the affected rows so two admins demoting each other at
the same moment cannot leave the site without an admin.
"""

import logging
from typing import Optional
from uuid import UUID

from django.contrib.auth import get_user_model
from django.db import transaction

from ..models import Role
from .exceptions import AccountNotFoundError, LastAdminError

User = get_user_model()
logger = logging.getLogger(__name__)


def list_team(*, role: Optional[str] = None):
    accounts = User.objects.all()
    if role:
        accounts = accounts.filter(role=role)
    return accounts.order_by('role', 'email')


def _lock_account(user_id: UUID) -> User:
    try:
        return User.objects.select_for_update().get(id=user_id)
    except User.DoesNotExist:
        raise AccountNotFoundError(f"Account {user_id} not found")


def _guard_last_admin(account: User) -> None:
    # Lock every active admin row so concurrent demotions serialize here.
    others = list(
        User.objects.select_for_update()
        .filter(role=Role.ADMIN, is_active=True)
        .exclude(id=account.id)
        .values_list('id', flat=True)
    )
    if not others:
        raise LastAdminError("At least one active admin must remain")


@transaction.atomic
def change_role(*, user_id: UUID, role: str, changed_by: User) -> User:
    """
    Grant or withdraw the admin role.

    Raises:
        ValueError: Unknown role
        AccountNotFoundError: No such account
        LastAdminError: Demoting the only active admin
    """
    if role not in Role.values:
        raise ValueError(f"Invalid role. Must be one of: {', '.join(Role.values)}")

    account = _lock_account(user_id)
    if account.role == role:
        return account

    if account.role == Role.ADMIN and account.is_active:
        _guard_last_admin(account)

    account.role = role
    account.save(update_fields=['role', 'updated_at'])
    logger.info("%s changed role of %s to %s", changed_by.email, account.email, role)
    return account


@transaction.atomic
def set_active(*, user_id: UUID, is_active: bool, changed_by: User) -> User:
    """
    Switch an account on or off. Deactivated accounts can no longer log in.

    Raises:
        AccountNotFoundError: No such account
        LastAdminError: Deactivating the only active admin
    """
    account = _lock_account(user_id)
    if account.is_active == is_active:
        return account

    if not is_active and account.role == Role.ADMIN:
        _guard_last_admin(account)

    account.is_active = is_active
    account.save(update_fields=['is_active', 'updated_at'])
    logger.info(
        "%s %s account %s",
        changed_by.email, 'activated' if is_active else 'deactivated', account.email,
    )
    return account
