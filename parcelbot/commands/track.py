"""
/track command.

Queries every provider that recognizes the shipment number at once, keeps a
single status message up to date as replies arrive, and sends a detailed
timeline for each provider that found the shipment.
"""

import asyncio
from html import escape
from typing import Optional
from loguru import logger

from parcelbot.commands.base import Command, NoProvidersError, UsageError
from parcelbot.communication.base import DeliveryError, MessageTransport
from parcelbot.logging_config import CommandLogger
from parcelbot.models import CommandArguments, InlineButton, ProviderReply, TrackingData
from parcelbot.providers.base import NotFoundError, Provider, ProviderRegistry
from parcelbot.tracking_service import TrackingService

PENDING_STATUS = "⌛ checking..."
NOT_FOUND_STATUS = "🔳 Not found"
ERROR_STATUS = "⚠️ Error: "
FOUND_STATUS = "🔎 "

STEP_TIME_FORMAT = "%Y-%m-%d %H:%M"
CALLBACK_DATA_LIMIT = 64  # bytes


def classify_reply(reply: ProviderReply) -> str:
    """Short status text for one provider reply."""
    if reply.error is not None:
        if isinstance(reply.error, NotFoundError):
            return NOT_FOUND_STATUS
        return ERROR_STATUS + (str(reply.error) or type(reply.error).__name__)

    latest = reply.data.latest_step
    return FOUND_STATUS + (latest.message if latest else "")


class StatusBoard:
    """
    Per-provider status lines shown in one message that is sent once and
    then edited in place.

    Only the aggregating coroutine touches a board, so it needs no locking.
    """

    def __init__(
        self,
        transport: MessageTransport,
        chat_id: int,
        provider_names: list[str],
        log: Optional[CommandLogger] = None,
    ):
        self.transport = transport
        self.chat_id = chat_id
        self.statuses: dict[str, str] = {name: PENDING_STATUS for name in provider_names}
        self.message_id: Optional[int] = None
        self._log = log or logger

    def update(self, provider_name: str, status: str):
        self.statuses[provider_name] = status

    def render(self) -> str:
        """One line per provider, sorted by name."""
        return "".join(
            f"{name}: <b>{escape(self.statuses[name])}</b>\n"
            for name in sorted(self.statuses)
        )

    async def publish(self):
        """Send the status message, or edit it if it already exists."""
        text = self.render()

        try:
            if self.message_id is None:
                self.message_id = await self.transport.send_message(self.chat_id, text, parse_mode="HTML")
            else:
                await self.transport.edit_message_text(self.chat_id, self.message_id, text, parse_mode="HTML")
        except DeliveryError as e:
            action = "send" if self.message_id is None else "edit"
            self._log.warning(f"Failed to {action} status message: {e}")


def format_tracking_details(data: TrackingData) -> str:
    """Full timeline for one provider, the latest step in bold."""
    text = (
        f"Detailed tracking for package <i>{escape(data.shipment_number)}</i> "
        f"provided by <b>{escape(data.provider_name)}</b>:\n"
    )

    last = len(data.steps) - 1
    for i, step in enumerate(data.steps):
        line = f"{step.timestamp.strftime(STEP_TIME_FORMAT)} {escape(step.message)}"
        if step.location:
            line += f" 📌 {escape(step.location)}"
        if i == last:
            line = f"<b>{line}</b>"
        text += line + "\n"

    if data.destination:
        text += f"\nThe package is headed to {escape(data.destination)}"

    return text


def follow_button(shipment_number: str) -> Optional[InlineButton]:
    """Button that issues /follow for the number, if it fits in callback data."""
    callback_data = f"/follow {shipment_number}"
    if len(callback_data.encode()) > CALLBACK_DATA_LIMIT:
        return None
    return InlineButton(text="🚶 Follow this package", callback_data=callback_data)


class TrackCommand(Command):
    """
    Tracks a shipment across every matching provider.

    Features:
    - One query task per matching provider, no upper bound
    - Live status message, re-rendered after every reply
    - Detailed timeline per successful provider
    """

    name = "track"

    def __init__(
        self,
        registry: ProviderRegistry,
        tracking_service: TrackingService,
        transport: MessageTransport,
    ):
        self.registry = registry
        self.tracking_service = tracking_service
        self.transport = transport

        # Queries outlive the invocation that started them
        self._in_flight: set[asyncio.Task] = set()

    def usage(self) -> str:
        return "/track <shipmentNumber>"

    def help(self) -> str:
        return "shows up-to-date tracking information about a package with the given number"

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def select_providers(self, shipment_number: str) -> list[Provider]:
        providers = self.registry.select(shipment_number)
        if not providers:
            raise NoProvidersError()
        return providers

    async def _query(self, provider: Provider, shipment_number: str, replies: asyncio.Queue):
        """Query one provider and hand over exactly one reply."""
        try:
            data = await self.tracking_service.invoke_provider_and_notify_followers(
                provider, shipment_number
            )
        except Exception as e:
            reply = ProviderReply(provider=provider, error=e)
        else:
            reply = ProviderReply(provider=provider, data=data)

        # Sized for every provider, never full
        replies.put_nowait(reply)

    def _start_queries(self, providers: list[Provider], shipment_number: str) -> asyncio.Queue:
        replies: asyncio.Queue = asyncio.Queue(maxsize=len(providers))

        for provider in providers:
            task = asyncio.create_task(
                self._query(provider, shipment_number, replies),
                name=f"track:{provider.get_name()}:{shipment_number}",
            )
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

        return replies

    async def _send_details(self, args: CommandArguments, data: TrackingData, log: CommandLogger):
        button = follow_button(data.shipment_number)

        try:
            await self.transport.send_message(
                args.chat_id,
                format_tracking_details(data),
                parse_mode="HTML",
                reply_to_message_id=args.message_id,
                buttons=[button] if button else None,
            )
        except DeliveryError as e:
            log.warning(f"Failed to send {data.provider_name} details: {e}")

    async def execute(self, args: CommandArguments) -> None:
        if not args.arguments:
            raise UsageError("usage: /track &lt;shipmentNumber&gt;")

        shipment_number = args.arguments[0]
        providers = self.select_providers(shipment_number)

        log = CommandLogger(self.name, args.chat_id, args.message_id)
        log.info(f"Tracking {shipment_number} with {', '.join(p.get_name() for p in providers)}")

        replies = self._start_queries(providers, shipment_number)

        board = StatusBoard(self.transport, args.chat_id, [p.get_name() for p in providers], log)
        await board.publish()

        found = 0
        for _ in range(len(providers)):
            reply: ProviderReply = await replies.get()

            board.update(reply.provider_name, classify_reply(reply))
            await board.publish()

            if reply.is_success:
                found += 1
                await self._send_details(args, reply.data, log)

        log.info(f"Finished {shipment_number}: {found}/{len(providers)} provider(s) found it")
