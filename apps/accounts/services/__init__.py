from .exceptions import (
    AccountsServiceError,
    InvalidCredentialsError,
    InactiveAccountError,
    AccountNotFoundError,
    LastAdminError,
)
from .user_authentication import authenticate_user
from .team_management import list_team, change_role, set_active

__all__ = [
    'AccountsServiceError',
    'InvalidCredentialsError',
    'InactiveAccountError',
    'AccountNotFoundError',
    'LastAdminError',
    'authenticate_user',
    'list_team',
    'change_role',
    'set_active',
]
