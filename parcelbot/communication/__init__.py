"""
Communication layer for parcelbot.
Handles sending and editing chat messages.
"""

from parcelbot.communication.base import DeliveryError, MessageTransport
from parcelbot.communication.telegram_client import TelegramClient, TelegramError
from parcelbot.communication.console_client import ConsoleTransport

__all__ = [
    "MessageTransport",
    "DeliveryError",
    "TelegramClient",
    "TelegramError",
    "ConsoleTransport",
]
