"""
/follow command.
Target of the button attached to detailed tracking messages.
"""

from html import escape
from loguru import logger

from parcelbot.commands.base import Command, UsageError
from parcelbot.communication.base import DeliveryError, MessageTransport
from parcelbot.models import CommandArguments


class FollowCommand(Command):
    """
    Acknowledges follow requests.

    Follower notifications are delivered through the tracking service's
    notifier hook; this bot only points the user back at /track.
    """

    name = "follow"

    def __init__(self, transport: MessageTransport):
        self.transport = transport

    def usage(self) -> str:
        return "/follow <shipmentNumber>"

    def help(self) -> str:
        return "asks for updates about a package"

    async def execute(self, args: CommandArguments) -> None:
        if not args.arguments:
            raise UsageError("usage: /follow &lt;shipmentNumber&gt;")

        number = escape(args.arguments[0])
        text = (
            f"🚶 Automatic updates are not available for <i>{number}</i> yet. "
            f"Send <code>/track {number}</code> to check it again."
        )

        try:
            await self.transport.send_message(
                args.chat_id, text, parse_mode="HTML", reply_to_message_id=args.message_id
            )
        except DeliveryError as e:
            logger.warning(f"Failed to answer /follow in chat {args.chat_id}: {e}")
