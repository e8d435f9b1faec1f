"""
Command base class and user-facing command errors.
"""

from abc import ABC, abstractmethod

from parcelbot.models import CommandArguments


class CommandError(Exception):
    """
    Error reported back to the user who issued the command.

    The message is sent with HTML parse mode, so it must already be escaped.
    """
    pass


class UsageError(CommandError):
    """Raised when a command is invoked with missing or bad arguments."""
    pass


class NoProvidersError(CommandError):
    """Raised when no provider recognizes a shipment number."""

    def __init__(self, message: str = "no tracking providers support this tracking number"):
        super().__init__(message)


class Command(ABC):
    """A chat command such as /track."""

    name: str = ""

    @abstractmethod
    def usage(self) -> str:
        pass

    @abstractmethod
    def help(self) -> str:
        pass

    @abstractmethod
    async def execute(self, args: CommandArguments) -> None:
        """
        Run the command.

        Raises:
            CommandError: reported to the user by the dispatcher
        """
        pass
