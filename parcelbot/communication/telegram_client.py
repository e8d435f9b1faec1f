"""
Telegram Bot API client.
Long-polls for updates and sends/edits messages over HTTPS.
"""

import asyncio
from typing import Any, Optional
import aiohttp
from loguru import logger

from parcelbot.config import BotConfig
from parcelbot.communication.base import DeliveryError, MessageTransport
from parcelbot.models import InlineButton


class TelegramError(DeliveryError):
    """Raised when the Bot API rejects a request."""

    def __init__(self, method: str, description: str, error_code: Optional[int] = None):
        super().__init__(f"{method} failed: {description}")
        self.method = method
        self.description = description
        self.error_code = error_code


class TelegramClient(MessageTransport):
    """
    Minimal asynchronous Bot API client.

    Features:
    - Shared HTTP session created lazily
    - Inline keyboard support
    - Bot API errors mapped to TelegramError
    """

    def __init__(self, config: BotConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def base_url(self) -> str:
        return f"{self.config.telegram_api_url}/bot{self.config.bot_token}"

    async def _ensure_session(self):
        """Ensure HTTP session is created."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout),
            )

    async def close(self):
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _call(self, method: str, payload: dict[str, Any]) -> Any:
        """Invoke a Bot API method and return its result field."""
        await self._ensure_session()

        try:
            async with self._session.post(f"{self.base_url}/{method}", json=payload) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    text = await response.text()
                    raise TelegramError(method, f"HTTP {response.status}: {text[:200]}", response.status)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DeliveryError(f"{method} failed: {e}") from e

        if not data.get("ok"):
            raise TelegramError(
                method,
                data.get("description", "unknown error"),
                data.get("error_code"),
            )

        return data.get("result")

    @staticmethod
    def _inline_keyboard(buttons: list[InlineButton]) -> dict:
        """One button per row."""
        return {
            "inline_keyboard": [
                [{"text": b.text, "callback_data": b.callback_data}]
                for b in buttons
            ]
        }

    async def send_message(
        self,
        chat_id: int,
        text: str,
        parse_mode: Optional[str] = "HTML",
        reply_to_message_id: Optional[int] = None,
        buttons: Optional[list[InlineButton]] = None,
    ) -> int:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}

        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_to_message_id:
            payload["reply_parameters"] = {
                "message_id": reply_to_message_id,
                "allow_sending_without_reply": True,
            }
        if buttons:
            payload["reply_markup"] = self._inline_keyboard(buttons)

        result = await self._call("sendMessage", payload)
        return result["message_id"]

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        parse_mode: Optional[str] = "HTML",
    ) -> None:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode

        try:
            await self._call("editMessageText", payload)
        except TelegramError as e:
            # Identical re-render; the message already shows this text
            if "message is not modified" in e.description:
                logger.debug(f"Message {message_id} unchanged")
                return
            raise

    async def answer_callback_query(self, callback_query_id: str, text: Optional[str] = None) -> None:
        payload: dict[str, Any] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        await self._call("answerCallbackQuery", payload)

    async def get_updates(self, offset: Optional[int] = None) -> list[dict]:
        """Long-poll for new messages and callback queries."""
        payload: dict[str, Any] = {
            "timeout": self.config.polling_timeout,
            "allowed_updates": ["message", "callback_query"],
        }
        if offset is not None:
            payload["offset"] = offset

        return await self._call("getUpdates", payload) or []

    async def get_me(self) -> dict:
        return await self._call("getMe", {})
