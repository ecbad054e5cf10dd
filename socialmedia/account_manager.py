"""
Account registration and credential checks.
"""

import logging

from socialmedia.exceptions import (
    AuthenticationFailedError,
    DuplicateUsernameError,
    InvalidPasswordError,
    InvalidUsernameError,
)
from socialmedia.models import Account
from socialmedia.schemas import AccountRegistration, LoginCredentials
from socialmedia.storage import AccountRepository, DuplicateKeyError
from socialmedia.utils import MIN_PASSWORD_LENGTH, is_blank, is_too_short

logger = logging.getLogger(__name__)

DUPLICATE_USERNAME_DETAIL = "Username already exists"
AUTHENTICATION_FAILED_DETAIL = "Invalid username or password"


class AccountManager:
    """Registers accounts and verifies login credentials."""

    def __init__(self, accounts: AccountRepository):
        self.accounts = accounts

    def register_account(self, candidate: AccountRegistration) -> Account:
        """
        Register a new account.

        Checks run cheapest first: username, password length, then the
        username lookup. The unique index on username backs up the lookup
        when two registrations race.

        Args:
            candidate: Requested username and password

        Returns:
            The stored Account with its assigned account_id

        Raises:
            InvalidUsernameError: username is missing or blank
            InvalidPasswordError: password is shorter than 4 characters
            DuplicateUsernameError: username is already registered
        """
        username = candidate.username
        password = candidate.password
        logger.info(f"Registering account: username={username}")

        if is_blank(username):
            raise InvalidUsernameError("Username cannot be blank")

        if is_too_short(password, MIN_PASSWORD_LENGTH):
            raise InvalidPasswordError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        if self.accounts.find_by_username(username) is not None:
            logger.info(f"Username already taken: {username}")
            raise DuplicateUsernameError(DUPLICATE_USERNAME_DETAIL)

        try:
            account = self.accounts.save(Account(username=username, password=password))
        except DuplicateKeyError as e:
            logger.info(f"Username claimed concurrently: {username}")
            raise DuplicateUsernameError(DUPLICATE_USERNAME_DETAIL) from e

        logger.info(f"Account registered: account_id={account.account_id}")
        return account

    def authenticate(self, credentials: LoginCredentials) -> Account:
        """
        Check a username/password pair against the stored accounts.

        Blank fields and wrong credentials fail the same way so the caller
        cannot tell which field was wrong.

        Raises:
            AuthenticationFailedError: credentials blank or not matching any account
        """
        username = credentials.username
        password = credentials.password
        logger.info(f"Authenticating: username={username}")

        if is_blank(username) or is_blank(password):
            raise AuthenticationFailedError(AUTHENTICATION_FAILED_DETAIL)

        account = self.accounts.find_by_username_and_password(username, password)
        if account is None:
            logger.info(f"Authentication failed: username={username}")
            raise AuthenticationFailedError(AUTHENTICATION_FAILED_DETAIL)

        logger.info(f"Authenticated: account_id={account.account_id}")
        return account
