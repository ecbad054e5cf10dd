"""
Validation helpers shared by the account and message managers.
"""

from typing import Optional


MIN_PASSWORD_LENGTH = 4
MAX_MESSAGE_LENGTH = 255

# Ids are 32-bit integers; epoch seconds fit a signed 64-bit column
MIN_ID = -(2 ** 31)
MAX_ID = 2 ** 31 - 1
MIN_EPOCH = -(2 ** 63)
MAX_EPOCH = 2 ** 63 - 1


def is_blank(value: Optional[str]) -> bool:
    """
    Check whether a text field is missing or holds only whitespace.

    Args:
        value: Field value as decoded from the request (may be None)

    Returns:
        True for None, "" or whitespace-only strings
    """
    return value is None or not value.strip()


def exceeds_length(value: Optional[str], limit: int) -> bool:
    """Check the raw (untrimmed) length of a text field against a limit."""
    return value is not None and len(value) > limit


def is_too_short(value: Optional[str], minimum: int) -> bool:
    """A missing value counts as zero characters long."""
    return len(value or "") < minimum
