"""Tests for command dispatch."""

import pytest

from parcelbot.commands import CommandDispatcher, HelpCommand, UsageError
from parcelbot.commands.base import Command
from parcelbot.models import CommandArguments


class EchoCommand(Command):
    """Records its invocations, optionally failing."""

    name = "echo"

    def __init__(self, error: Exception = None):
        self.error = error
        self.calls: list[CommandArguments] = []

    def usage(self) -> str:
        return "/echo <text>"

    def help(self) -> str:
        return "repeats text"

    async def execute(self, args: CommandArguments) -> None:
        self.calls.append(args)
        if self.error:
            raise self.error


class TestParse:
    """Tests for command parsing."""

    def test_plain_command(self):
        assert CommandDispatcher.parse("/track 123") == ("track", ["123"])

    def test_bot_mention_and_case(self):
        assert CommandDispatcher.parse("/Track@parcel_bot  1Z99  X") == ("track", ["1Z99", "X"])

    def test_not_a_command(self):
        assert CommandDispatcher.parse("hello there") is None
        assert CommandDispatcher.parse("/") is None
        assert CommandDispatcher.parse("   ") is None


class TestDispatch:
    """Tests for CommandDispatcher.dispatch."""

    @pytest.mark.asyncio
    async def test_routes_arguments(self, transport):
        """Test a known command receives its arguments and origin."""
        dispatcher = CommandDispatcher(transport)
        echo = EchoCommand()
        dispatcher.register(echo)

        ok = await dispatcher.dispatch("/echo a b", chat_id=5, message_id=9)

        assert ok is True
        assert echo.calls[0].arguments == ["a", "b"]
        assert echo.calls[0].chat_id == 5
        assert echo.calls[0].message_id == 9
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_unknown_command(self, transport):
        """Test unknown commands get a reply."""
        dispatcher = CommandDispatcher(transport)

        ok = await dispatcher.dispatch("/nope", chat_id=5, message_id=9)

        assert ok is False
        assert transport.sent[0]["text"] == "unknown command: /nope"
        assert transport.sent[0]["reply_to_message_id"] == 9

    @pytest.mark.asyncio
    async def test_unknown_command_is_escaped(self, transport):
        """Test the echoed command name cannot break the HTML reply."""
        dispatcher = CommandDispatcher(transport)

        await dispatcher.dispatch("/<x&y", chat_id=5, message_id=9)

        assert transport.sent[0]["text"] == "unknown command: /&lt;x&amp;y"

    @pytest.mark.asyncio
    async def test_command_error_is_replied(self, transport):
        """Test CommandError text is sent back to the user."""
        dispatcher = CommandDispatcher(transport)
        dispatcher.register(EchoCommand(error=UsageError("usage: /echo &lt;text&gt;")))

        ok = await dispatcher.dispatch("/echo", chat_id=5, message_id=9)

        assert ok is False
        assert transport.sent[0]["text"] == "⚠️ usage: /echo &lt;text&gt;"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_hidden(self, transport):
        """Test internal errors are not leaked to the chat."""
        dispatcher = CommandDispatcher(transport)
        dispatcher.register(EchoCommand(error=KeyError("secret")))

        ok = await dispatcher.dispatch("/echo x", chat_id=5, message_id=9)

        assert ok is False
        assert "secret" not in transport.sent[0]["text"]

    @pytest.mark.asyncio
    async def test_disallowed_chat_is_ignored(self, transport):
        """Test chats outside the allow list are ignored silently."""
        dispatcher = CommandDispatcher(transport, allowed_chat_ids=[1])
        echo = EchoCommand()
        dispatcher.register(echo)

        ok = await dispatcher.dispatch("/echo x", chat_id=2, message_id=9)

        assert ok is False
        assert echo.calls == []
        assert transport.sent == []

    def test_duplicate_registration(self, transport):
        dispatcher = CommandDispatcher(transport)
        dispatcher.register(EchoCommand())

        with pytest.raises(ValueError):
            dispatcher.register(EchoCommand())


class TestHelp:
    """Tests for /help."""

    @pytest.mark.asyncio
    async def test_lists_commands_and_alias(self, transport):
        """Test /start is an alias of /help and lists every command."""
        dispatcher = CommandDispatcher(transport)
        dispatcher.register(EchoCommand())
        dispatcher.register(HelpCommand(dispatcher, transport), "start")

        ok = await dispatcher.dispatch("/start", chat_id=5, message_id=9)

        assert ok is True
        text = transport.sent[0]["text"]
        assert "<code>/echo &lt;text&gt;</code> - repeats text" in text
        assert "<code>/help</code> - lists available commands" in text
