"""
Console transport.
Renders bot messages in the terminal so commands can run without Telegram.
"""

import re
from html import unescape
from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from parcelbot.communication.base import DeliveryError, MessageTransport
from parcelbot.models import InlineButton

# Bot API HTML tags that map one-to-one onto rich markup
_TAG_MAP = {
    "b": "bold",
    "strong": "bold",
    "i": "italic",
    "em": "italic",
    "u": "underline",
    "s": "strike",
    "code": "cyan",
}

_TAG_RE = re.compile(r"<(/?)(\w+)[^>]*>")


def html_to_rich(text: str) -> str:
    """Translate Bot API HTML into rich console markup."""

    def _escape(fragment: str) -> str:
        return escape(unescape(fragment))

    out = []
    pos = 0
    for match in _TAG_RE.finditer(text):
        out.append(_escape(text[pos:match.start()]))
        closing, tag = match.group(1), match.group(2).lower()
        style = _TAG_MAP.get(tag)
        if style:
            out.append(f"[/{style}]" if closing else f"[{style}]")
        pos = match.end()
    out.append(_escape(text[pos:]))

    return "".join(out)


class ConsoleTransport(MessageTransport):
    """Prints each sent or edited message as a rich panel."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._next_id = 1
        self._messages: dict[int, str] = {}

    def _render(self, message_id: int, title: str, text: str, parse_mode: Optional[str]):
        body = html_to_rich(text) if parse_mode == "HTML" else escape(text)
        self.console.print(Panel(body.rstrip(), title=f"{title} #{message_id}", title_align="left"))

    async def send_message(
        self,
        chat_id: int,
        text: str,
        parse_mode: Optional[str] = "HTML",
        reply_to_message_id: Optional[int] = None,
        buttons: Optional[list[InlineButton]] = None,
    ) -> int:
        message_id = self._next_id
        self._next_id += 1
        self._messages[message_id] = text

        title = f"reply to #{reply_to_message_id}" if reply_to_message_id else "message"
        self._render(message_id, title, text, parse_mode)

        for button in buttons or []:
            self.console.print(f"  [reverse] {escape(button.text)} [/reverse] [dim]{escape(button.callback_data)}[/dim]")

        return message_id

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        parse_mode: Optional[str] = "HTML",
    ) -> None:
        if message_id not in self._messages:
            raise DeliveryError(f"message {message_id} does not exist")

        self._messages[message_id] = text
        self._render(message_id, "edited", text, parse_mode)
