"""Shared fixtures and fakes."""

import asyncio
from datetime import datetime
from typing import Optional

import pytest

from parcelbot.config import BotConfig
from parcelbot.communication.base import DeliveryError, MessageTransport
from parcelbot.models import InlineButton, TrackingData, TrackingStep
from parcelbot.providers.base import Provider


class FakeProvider(Provider):
    """Provider answering from canned data, optionally held until released."""

    def __init__(
        self,
        name: str,
        prefix: str = "",
        steps: Optional[list[TrackingStep]] = None,
        destination: str = "",
        error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.name = name
        self.prefix = prefix
        self.steps = steps or []
        self.destination = destination
        self.error = error
        self.gate = gate
        self.calls: list[str] = []

    def get_name(self) -> str:
        return self.name

    def matches_number(self, shipment_number: str) -> bool:
        return shipment_number.startswith(self.prefix)

    async def track(self, shipment_number: str) -> TrackingData:
        self.calls.append(shipment_number)

        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error

        return TrackingData(
            shipment_number=shipment_number,
            provider_name=self.name,
            destination=self.destination,
            steps=self.steps,
        )


class RecordingTransport(MessageTransport):
    """Transport that records every message instead of sending it."""

    def __init__(self, fail_sends: int = 0, fail_edits: int = 0):
        self.sent: list[dict] = []
        self.edits: list[dict] = []
        self.fail_sends = fail_sends
        self.fail_edits = fail_edits
        self._next_id = 100

    async def send_message(
        self,
        chat_id: int,
        text: str,
        parse_mode: Optional[str] = "HTML",
        reply_to_message_id: Optional[int] = None,
        buttons: Optional[list[InlineButton]] = None,
    ) -> int:
        if self.fail_sends:
            self.fail_sends -= 1
            raise DeliveryError("network down")

        message_id = self._next_id
        self._next_id += 1
        self.sent.append({
            "message_id": message_id,
            "chat_id": chat_id,
            "text": text,
            "parse_mode": parse_mode,
            "reply_to_message_id": reply_to_message_id,
            "buttons": buttons,
        })
        return message_id

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        parse_mode: Optional[str] = "HTML",
    ) -> None:
        if self.fail_edits:
            self.fail_edits -= 1
            raise DeliveryError("edit rejected")

        self.edits.append({
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
            "parse_mode": parse_mode,
        })

    @property
    def status_texts(self) -> list[str]:
        """Status message text after the initial send and each edit."""
        status = [m for m in self.sent if m["reply_to_message_id"] is None]
        return [m["text"] for m in status] + [e["text"] for e in self.edits]

    @property
    def detail_messages(self) -> list[dict]:
        return [m for m in self.sent if m["reply_to_message_id"] is not None]


def step(hour: int, message: str, location: str = "") -> TrackingStep:
    return TrackingStep(timestamp=datetime(2024, 5, 1, hour, 0), message=message, location=location)


@pytest.fixture
def config():
    """Create test configuration."""
    return BotConfig(
        bot_token="123:test",
        provider_timeout=5,
        log_file="logs/test.log",
    )


@pytest.fixture
def transport():
    return RecordingTransport()
