"""Errors raised by team account services."""


class AccountsServiceError(Exception):
    """Base exception for accounts services."""


class InvalidCredentialsError(AccountsServiceError):
    """Email unknown or password wrong; callers must not tell which."""


class InactiveAccountError(AccountsServiceError):
    """The account was switched off by an admin."""


class AccountNotFoundError(AccountsServiceError):
    pass


class LastAdminError(AccountsServiceError):
    """The change would leave the team without an active admin."""
