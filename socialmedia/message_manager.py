"""
Message creation, lookup, update and deletion.
"""

import logging
import time
from typing import Optional

from socialmedia.exceptions import InvalidMessageError
from socialmedia.models import Message
from socialmedia.schemas import MessageCandidate
from socialmedia.storage import AccountRepository, MessageRepository
from socialmedia.utils import MAX_MESSAGE_LENGTH, exceeds_length, is_blank

logger = logging.getLogger(__name__)


def _check_text(message_text: Optional[str]) -> None:
    if is_blank(message_text):
        raise InvalidMessageError("Message text cannot be blank")
    if exceeds_length(message_text, MAX_MESSAGE_LENGTH):
        raise InvalidMessageError(f"Message text must not exceed {MAX_MESSAGE_LENGTH} characters")


class MessageManager:
    """
    Business rules for messages.

    Lookups and deletes report absence with None; only create and update
    raise InvalidMessageError.
    """

    def __init__(self, messages: MessageRepository, accounts: AccountRepository):
        self.messages = messages
        self.accounts = accounts

    def create_message(self, candidate: MessageCandidate) -> Message:
        """
        Store a new message.

        Args:
            candidate: Text, posting account id and optional posting time

        Returns:
            The stored Message with its assigned message_id

        Raises:
            InvalidMessageError: text blank or over 255 characters, or the
                posting account does not exist
        """
        logger.info(f"Creating message: posted_by={candidate.posted_by}")
        _check_text(candidate.message_text)

        if not self.accounts.exists_by_id(candidate.posted_by):
            logger.info(f"Posting account not found: {candidate.posted_by}")
            raise InvalidMessageError("Account does not exist")

        posted_at = candidate.time_posted_epoch
        if posted_at is None:
            posted_at = int(time.time())

        message = self.messages.save(
            Message(
                posted_by=candidate.posted_by,
                message_text=candidate.message_text,
                time_posted_epoch=posted_at,
            )
        )
        logger.info(f"Message created: message_id={message.message_id}")
        return message

    def get_all_messages(self) -> list[Message]:
        messages = self.messages.find_all()
        logger.info(f"Retrieved {len(messages)} messages")
        return messages

    def get_message_by_id(self, message_id: int) -> Optional[Message]:
        return self.messages.find_by_id(message_id)

    def delete_message_by_id(self, message_id: int) -> Optional[int]:
        """
        Delete a message if it exists.

        Returns:
            1 when a message was removed, None when there was nothing to remove
        """
        if not self.messages.delete_by_id(message_id):
            logger.info(f"Delete skipped, message not found: {message_id}")
            return None
        logger.info(f"Message deleted: message_id={message_id}")
        return 1

    def update_message_text_by_id(self, message_id: int, message_text: Optional[str]) -> int:
        """
        Replace the text of an existing message. No other field changes.

        Returns:
            1, the number of messages updated

        Raises:
            InvalidMessageError: message does not exist, or the new text is
                blank or over 255 characters
        """
        logger.info(f"Updating message text: message_id={message_id}")
        message = self.messages.find_by_id(message_id)
        if message is None:
            raise InvalidMessageError("Message does not exist")

        _check_text(message_text)

        message.message_text = message_text
        self.messages.save(message)
        logger.info(f"Message updated: message_id={message_id}")
        return 1

    def get_messages_by_account_id(self, account_id: int) -> list[Message]:
        messages = self.messages.find_by_posted_by(account_id)
        logger.info(f"Retrieved {len(messages)} messages for account {account_id}")
        return messages
