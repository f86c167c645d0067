import pytest

from apps.accounts.models import User


@pytest.fixture
def user_inactive(db):
    """Deactivated admin account."""
    return User.objects.create_admin(
        email='inactive@example.com',
        password='TestPass123!',
        display_name='Former Admin',
        is_active=False,
    )


@pytest.fixture
def second_admin(db):
    return User.objects.create_admin(email='ops@example.com', password='OpsPass123!')
