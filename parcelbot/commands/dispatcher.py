"""
Command dispatcher.
Parses incoming command text, routes it to a command and reports failures.
"""

from html import escape
from typing import Optional
from loguru import logger

from parcelbot.commands.base import Command, CommandError
from parcelbot.communication.base import DeliveryError, MessageTransport
from parcelbot.models import CommandArguments


class CommandDispatcher:
    """
    Routes "/name arg1 arg2" text to registered commands.

    Only CommandError messages reach the user verbatim; anything unexpected
    is logged with its traceback and replaced by a generic reply.
    """

    def __init__(self, transport: MessageTransport, allowed_chat_ids: Optional[list[int]] = None):
        self.transport = transport
        self.allowed_chat_ids = set(allowed_chat_ids or [])
        self._commands: dict[str, Command] = {}
        self._aliases: dict[str, str] = {}

    @property
    def commands(self) -> list[Command]:
        return list(self._commands.values())

    def register(self, command: Command, *aliases: str):
        """Register a command under its name and any aliases."""
        if command.name in self._commands:
            raise ValueError(f"Command already registered: /{command.name}")

        self._commands[command.name] = command
        for alias in aliases:
            self._aliases[alias] = command.name

        logger.debug(f"Registered command /{command.name}")

    def get(self, name: str) -> Optional[Command]:
        return self._commands.get(self._aliases.get(name, name))

    @staticmethod
    def parse(text: str) -> Optional[tuple[str, list[str]]]:
        """
        Split command text into name and arguments.

        "/track@parcel_bot 123 456" -> ("track", ["123", "456"])

        Returns:
            None when the text is not a command
        """
        parts = text.strip().split()
        if not parts or not parts[0].startswith("/") or len(parts[0]) == 1:
            return None

        name = parts[0][1:].split("@", 1)[0].lower()
        return name, parts[1:]

    def is_allowed(self, chat_id: int) -> bool:
        return not self.allowed_chat_ids or chat_id in self.allowed_chat_ids

    async def _reply(self, chat_id: int, message_id: int, text: str):
        try:
            await self.transport.send_message(
                chat_id, text, parse_mode="HTML", reply_to_message_id=message_id
            )
        except DeliveryError as e:
            logger.warning(f"Failed to reply in chat {chat_id}: {e}")

    async def dispatch(self, text: str, chat_id: int, message_id: int) -> bool:
        """
        Run the command contained in a message.

        Returns:
            True if a command ran to completion without error
        """
        parsed = self.parse(text)
        if parsed is None:
            return False

        name, arguments = parsed

        if not self.is_allowed(chat_id):
            logger.warning(f"Ignoring /{name} from chat {chat_id} (not allowed)")
            return False

        command = self.get(name)
        if command is None:
            await self._reply(chat_id, message_id, f"unknown command: /{escape(name)}")
            return False

        args = CommandArguments(
            command=command.name,
            arguments=arguments,
            chat_id=chat_id,
            message_id=message_id,
        )

        try:
            await command.execute(args)
            return True

        except CommandError as e:
            logger.info(f"/{name} in chat {chat_id} failed: {e}")
            await self._reply(chat_id, message_id, f"⚠️ {e}")

        except Exception as e:
            logger.exception(f"/{name} in chat {chat_id} crashed: {e}")
            await self._reply(chat_id, message_id, "⚠️ Something went wrong while running this command")

        return False
