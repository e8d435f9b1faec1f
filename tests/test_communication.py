"""Tests for the Telegram and console transports."""

import io

import pytest
from rich.console import Console

from parcelbot.communication import ConsoleTransport, DeliveryError, TelegramClient, TelegramError
from parcelbot.communication.console_client import html_to_rich
from parcelbot.models import InlineButton


class StubTelegramClient(TelegramClient):
    """TelegramClient answering Bot API calls from a script."""

    def __init__(self, config, responses):
        super().__init__(config)
        self.responses = list(responses)
        self.requests: list[tuple[str, dict]] = []

    async def _call(self, method, payload):
        self.requests.append((method, payload))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class TestTelegramClient:
    """Tests for TelegramClient request building."""

    @pytest.mark.asyncio
    async def test_send_message_payload(self, config):
        """Test reply target and inline button are encoded."""
        client = StubTelegramClient(config, [{"message_id": 55}])

        message_id = await client.send_message(
            42,
            "<b>hi</b>",
            reply_to_message_id=7,
            buttons=[InlineButton(text="Follow", callback_data="/follow 1")],
        )

        method, payload = client.requests[0]
        assert message_id == 55
        assert method == "sendMessage"
        assert payload["parse_mode"] == "HTML"
        assert payload["reply_parameters"]["message_id"] == 7
        assert payload["reply_markup"] == {
            "inline_keyboard": [[{"text": "Follow", "callback_data": "/follow 1"}]]
        }

    @pytest.mark.asyncio
    async def test_plain_send_has_no_extras(self, config):
        client = StubTelegramClient(config, [{"message_id": 1}])

        await client.send_message(42, "status")

        _, payload = client.requests[0]
        assert "reply_parameters" not in payload
        assert "reply_markup" not in payload

    @pytest.mark.asyncio
    async def test_edit_not_modified_is_success(self, config):
        """Test re-rendering identical text is not an error."""
        error = TelegramError(
            "editMessageText",
            "Bad Request: message is not modified: specified new message content is the same",
            400,
        )
        client = StubTelegramClient(config, [error])

        await client.edit_message_text(42, 55, "same")

        assert client.requests[0][1]["message_id"] == 55

    @pytest.mark.asyncio
    async def test_edit_other_errors_raise(self, config):
        error = TelegramError("editMessageText", "Bad Request: message to edit not found", 400)
        client = StubTelegramClient(config, [error])

        with pytest.raises(DeliveryError):
            await client.edit_message_text(42, 55, "text")

    @pytest.mark.asyncio
    async def test_get_updates_offset(self, config):
        client = StubTelegramClient(config, [[{"update_id": 3}]])

        updates = await client.get_updates(offset=3)

        method, payload = client.requests[0]
        assert method == "getUpdates"
        assert payload["offset"] == 3
        assert payload["timeout"] == config.polling_timeout
        assert updates == [{"update_id": 3}]

    def test_base_url(self, config):
        client = TelegramClient(config)
        assert client.base_url == "https://api.telegram.org/bot123:test"


class TestConsoleTransport:
    """Tests for ConsoleTransport."""

    def test_html_to_rich(self):
        assert html_to_rich("A: <b>🔎 arrived &lt;hub&gt;</b>") == "A: [bold]🔎 arrived <hub>[/bold]"
        assert html_to_rich("<i>[x]</i>") == r"[italic]\[x][/italic]"

    @pytest.mark.asyncio
    async def test_send_and_edit(self):
        output = io.StringIO()
        transport = ConsoleTransport(Console(file=output, width=80, color_system=None))

        message_id = await transport.send_message(0, "A: <b>⌛ checking...</b>")
        await transport.edit_message_text(0, message_id, "A: <b>🔳 Not found</b>")

        text = output.getvalue()
        assert message_id == 1
        assert "checking..." in text
        assert "Not found" in text

    @pytest.mark.asyncio
    async def test_edit_unknown_message(self):
        transport = ConsoleTransport(Console(file=io.StringIO()))

        with pytest.raises(DeliveryError):
            await transport.edit_message_text(0, 99, "x")
