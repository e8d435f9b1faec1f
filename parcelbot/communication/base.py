"""
Message transport contract shared by the Telegram and console clients.
"""

from abc import ABC, abstractmethod
from typing import Optional

from parcelbot.models import InlineButton


class DeliveryError(Exception):
    """Raised when a message cannot be sent or edited."""
    pass


class MessageTransport(ABC):
    """Sends and edits chat messages."""

    @abstractmethod
    async def send_message(
        self,
        chat_id: int,
        text: str,
        parse_mode: Optional[str] = "HTML",
        reply_to_message_id: Optional[int] = None,
        buttons: Optional[list[InlineButton]] = None,
    ) -> int:
        """
        Send a new message.

        Returns:
            Id of the sent message

        Raises:
            DeliveryError: the message was not delivered
        """
        pass

    @abstractmethod
    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        parse_mode: Optional[str] = "HTML",
    ) -> None:
        """
        Replace the text of a previously sent message.

        Raises:
            DeliveryError: the message was not edited
        """
        pass
