"""
Error taxonomy for account and message operations.

Every failure a manager can report is a subclass of ``SocialMediaError``
carrying the HTTP status the boundary layer answers with. Anything that is
not a ``SocialMediaError`` is treated as an unexpected failure (500) and its
text is never returned to the caller.
"""

from fastapi import status


UNEXPECTED_ERROR_DETAIL = "An unexpected error occurred"


class SocialMediaError(Exception):
    """Base class for caller errors raised by the managers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidUsernameError(SocialMediaError):
    kind = "invalid_username"


class InvalidPasswordError(SocialMediaError):
    kind = "invalid_password"


class DuplicateUsernameError(SocialMediaError):
    status_code = status.HTTP_409_CONFLICT
    kind = "duplicate_username"


class AuthenticationFailedError(SocialMediaError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "authentication_failed"


class InvalidMessageError(SocialMediaError):
    kind = "invalid_message"
