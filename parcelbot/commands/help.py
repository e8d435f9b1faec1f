"""
/help command.
"""

from html import escape
from loguru import logger

from parcelbot.commands.base import Command
from parcelbot.commands.dispatcher import CommandDispatcher
from parcelbot.communication.base import DeliveryError, MessageTransport
from parcelbot.models import CommandArguments


class HelpCommand(Command):
    """Lists every registered command."""

    name = "help"

    def __init__(self, dispatcher: CommandDispatcher, transport: MessageTransport):
        self.dispatcher = dispatcher
        self.transport = transport

    def usage(self) -> str:
        return "/help"

    def help(self) -> str:
        return "lists available commands"

    def render(self) -> str:
        lines = ["Available commands:"]
        for command in sorted(self.dispatcher.commands, key=lambda c: c.name):
            lines.append(f"<code>{escape(command.usage())}</code> - {escape(command.help())}")
        return "\n".join(lines)

    async def execute(self, args: CommandArguments) -> None:
        try:
            await self.transport.send_message(
                args.chat_id,
                self.render(),
                parse_mode="HTML",
                reply_to_message_id=args.message_id,
            )
        except DeliveryError as e:
            logger.warning(f"Failed to send help to chat {args.chat_id}: {e}")
